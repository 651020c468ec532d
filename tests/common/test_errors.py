"""Tests for the error hierarchy."""

import pytest

from unitypkg.common import ConfigurationError, UnityPkgError
from unitypkg.extractor.errors import (
    ArchiveError,
    AssetWriteError,
    CorruptedArchiveError,
    ExtractionError,
    MalformedArchiveError,
    PathnameEncodingError,
    UnknownMemberError,
)


class TestUnityPkgError:
    """Test the base error."""

    def test_message_and_context(self):
        error = UnityPkgError("Something failed", archive="x.unitypackage", entries=3)

        assert str(error) == "Something failed"
        assert error.message == "Something failed"
        assert error.context == {"archive": "x.unitypackage", "entries": 3}

    @pytest.mark.parametrize("error_class", [
        ConfigurationError,
        ArchiveError,
        CorruptedArchiveError,
        MalformedArchiveError,
    ])
    def test_subclasses_share_base(self, error_class):
        error = error_class("failed", key="value")

        assert isinstance(error, UnityPkgError)
        assert error.context == {"key": "value"}


class TestArchiveErrors:
    """Test errors raised while decoding a package."""

    def test_unknown_member(self):
        error = UnknownMemberError("thumbnail.jpg", "0a1b/")

        assert isinstance(error, ArchiveError)
        assert error.member == "thumbnail.jpg"
        assert error.prefix == "0a1b/"
        assert "thumbnail.jpg" in str(error)
        assert error.context == {"member": "thumbnail.jpg", "prefix": "0a1b/"}

    def test_pathname_encoding(self):
        error = PathnameEncodingError("0a1b/", "invalid start byte")

        assert isinstance(error, ArchiveError)
        assert error.prefix == "0a1b/"
        assert "invalid start byte" in str(error)

    def test_asset_write_error_is_not_archive_error(self):
        error = AssetWriteError("foo/bar.txt", "disk full")

        assert not isinstance(error, ArchiveError)
        assert error.path == "foo/bar.txt"
        assert str(error) == "Failed to write foo/bar.txt: disk full"


class TestExtractionError:
    """Test aggregation of write failures."""

    def test_lists_failed_paths(self):
        failures = [("a.txt", OSError("x")), ("b.txt", OSError("y"))]
        error = ExtractionError(failures)

        assert error.failures == failures
        assert error.context == {"failed": 2}
        assert "a.txt, b.txt" in str(error)

    def test_truncates_long_lists(self):
        failures = [(f"file{i}.txt", OSError("x")) for i in range(8)]

        message = str(ExtractionError(failures))

        assert "file4.txt" in message
        assert "file5.txt" not in message
        assert "(+3 more)" in message

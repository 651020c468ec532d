"""Extraction-specific errors."""

from typing import Any, List, Tuple

from unitypkg.common import UnityPkgError


class ArchiveError(UnityPkgError):
    """Archive processing failed."""
    pass


class CorruptedArchiveError(ArchiveError):
    """The gzip or tar stream could not be decoded."""
    pass


class MalformedArchiveError(ArchiveError):
    """Entries do not follow the per-asset grouping layout."""
    pass


class UnknownMemberError(ArchiveError):
    """An asset group contains a member this extractor does not understand."""

    def __init__(self, member: str, prefix: str, **context: Any) -> None:
        super().__init__(
            f"Unknown member '{member}' in asset group '{prefix}'",
            member=member,
            prefix=prefix,
            **context,
        )
        self.member = member
        self.prefix = prefix


class PathnameEncodingError(ArchiveError):
    """The pathname member of an asset group is not valid UTF-8."""

    def __init__(self, prefix: str, reason: str) -> None:
        super().__init__(
            f"Pathname of asset group '{prefix}' is not valid UTF-8: {reason}",
            prefix=prefix,
        )
        self.prefix = prefix


class ExtractionError(ArchiveError):
    """One or more assets could not be written."""

    def __init__(self, failures: List[Tuple[str, BaseException]]) -> None:
        shown = ", ".join(path for path, _ in failures[:5])
        more = f" (+{len(failures) - 5} more)" if len(failures) > 5 else ""
        super().__init__(
            f"Failed to write {len(failures)} asset(s): {shown}{more}",
            failed=len(failures),
        )
        self.failures = failures


class AssetWriteError(UnityPkgError):
    """Creating a directory or writing an asset file failed."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Failed to write {path}: {reason}", path=path)
        self.path = path

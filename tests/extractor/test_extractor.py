"""End-to-end tests for package extraction."""

import pytest

from conftest import asset_group
from unitypkg.extractor.config import ExtractionConfig
from unitypkg.extractor.errors import (
    ArchiveError,
    AssetWriteError,
    ExtractionError,
    UnknownMemberError,
)
from unitypkg.extractor.extractor import UnityPackageExtractor
from unitypkg.extractor.writer import write_asset


def tree(root):
    """Map of relative path -> bytes for every file under root."""
    return {
        str(p.relative_to(root)).replace("\\", "/"): p.read_bytes()
        for p in sorted(root.rglob("*"))
        if p.is_file()
    }


class TestUnityPackageExtractor:
    """Test the full decode, resolve, dispatch and write flow."""

    @pytest.mark.asyncio
    async def test_extract_with_meta(self, two_asset_package, out_dir):
        extractor = UnityPackageExtractor(two_asset_package, out_dir, include_meta=True)

        summary = await extractor.extract()

        assert tree(out_dir) == {
            "foo/bar.txt": b"hello",
            "foo/bar.txt.meta": b"m1",
            "foo/baz.txt": b"world",
            "foo/baz.txt.meta": b"m2",
        }
        assert summary.records_assembled == 2
        assert summary.written == 2
        assert summary.bytes_written == len(b"hello" + b"m1" + b"world" + b"m2")

    @pytest.mark.asyncio
    async def test_extract_without_meta(self, two_asset_package, out_dir):
        await UnityPackageExtractor(two_asset_package, out_dir).extract()

        assert tree(out_dir) == {"foo/bar.txt": b"hello", "foo/baz.txt": b"world"}

    @pytest.mark.asyncio
    async def test_filter_prefix_rewrites_paths(self, two_asset_package, out_dir):
        await UnityPackageExtractor(two_asset_package, out_dir, filter_prefix="foo").extract()

        assert tree(out_dir) == {"bar.txt": b"hello", "baz.txt": b"world"}

    @pytest.mark.asyncio
    async def test_filter_prefix_skips_other_assets(self, make_package, out_dir):
        package = make_package([
            asset_group("g1", "Assets/Art/tree.png", b"tree"),
            asset_group("g2", "Assets/Artwork/sky.png", b"sky"),
            asset_group("g3", "Assets/Code/Player.cs", b"class Player {}"),
            asset_group("g4", "Assets/Art/Rocks/rock.png", b"rock"),
        ])

        summary = await UnityPackageExtractor(package, out_dir, filter_prefix="Assets/Art").extract()

        assert tree(out_dir) == {"tree.png": b"tree", "Rocks/rock.png": b"rock"}
        assert summary.records_assembled == 4
        assert summary.skipped_by_filter == 2

    @pytest.mark.asyncio
    async def test_dry_run_writes_nothing(self, two_asset_package, out_dir):
        summary = await UnityPackageExtractor(
            two_asset_package, out_dir, include_meta=True, dry_run=True
        ).extract()

        assert not out_dir.exists()
        assert summary.dry_run is True
        assert summary.records_dispatched == 2
        assert summary.written == 0

    @pytest.mark.asyncio
    async def test_many_assets_low_concurrency(self, make_package, out_dir):
        package = make_package([
            asset_group(f"g{i:03d}", f"Assets/file{i:03d}.txt", f"content {i}".encode())
            for i in range(50)
        ])

        summary = await UnityPackageExtractor(package, out_dir, max_concurrency=2).extract()

        files = tree(out_dir)
        assert len(files) == 50
        assert files["Assets/file042.txt"] == b"content 42"
        assert summary.written == 50

    @pytest.mark.asyncio
    async def test_unknown_member_aborts(self, make_package, out_dir):
        """Assets dispatched before the bad group are still written."""
        package = make_package([
            asset_group("a1", "foo/bar.txt", b"hello"),
            ("a2", [("asset", b"x"), ("thumbnail.jpg", b"")]),
        ])

        with pytest.raises(UnknownMemberError):
            await UnityPackageExtractor(package, out_dir).extract()

        assert (out_dir / "foo" / "bar.txt").read_bytes() == b"hello"

    @pytest.mark.asyncio
    async def test_unsafe_path_is_skipped(self, make_package, out_dir, tmp_path):
        package = make_package([
            asset_group("a1", "../escape.txt", b"evil"),
            asset_group("a2", "foo/bar.txt", b"hello"),
        ])

        summary = await UnityPackageExtractor(package, out_dir).extract()

        assert not (tmp_path / "escape.txt").exists()
        assert tree(out_dir) == {"foo/bar.txt": b"hello"}
        assert summary.skipped_unsafe == 1

    @pytest.mark.asyncio
    async def test_failed_write_reported_after_all_writes(self, two_asset_package, out_dir):
        async def flaky_writer(base_dir, output_path, data, meta):
            if output_path == "foo/bar.txt":
                raise AssetWriteError(output_path, "permission denied")
            return await write_asset(base_dir, output_path, data, meta)

        extractor = UnityPackageExtractor(two_asset_package, out_dir, writer=flaky_writer)

        with pytest.raises(ExtractionError) as exc_info:
            await extractor.extract()

        assert [path for path, _ in exc_info.value.failures] == ["foo/bar.txt"]
        assert tree(out_dir) == {"foo/baz.txt": b"world"}

    @pytest.mark.asyncio
    async def test_strict_mode_rejects_incomplete_group(self, make_package, out_dir):
        package = make_package([
            asset_group("a1", "foo/bar.txt", b"hello"),
            ("a2", [("asset", b"orphan")]),
        ])

        summary = await UnityPackageExtractor(package, out_dir).extract()
        assert summary.groups_dropped == 1

        with pytest.raises(ArchiveError):
            await UnityPackageExtractor(package, out_dir, strict=True).extract()

    def test_run_is_synchronous(self, two_asset_package, out_dir):
        summary = UnityPackageExtractor(two_asset_package, out_dir).run()

        assert summary.written == 2
        assert (out_dir / "foo" / "baz.txt").read_bytes() == b"world"

    def test_from_config(self, two_asset_package, out_dir):
        config = ExtractionConfig(filter_prefix="foo", include_meta=True, max_concurrency=1)

        extractor = UnityPackageExtractor.from_config(two_asset_package, out_dir, config)

        assert extractor.filter_prefix == "foo"
        assert extractor.include_meta is True
        assert extractor.max_concurrency == 1


class TestExtractorValidation:
    """Test argument validation."""

    def test_missing_package(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            UnityPackageExtractor(tmp_path / "missing.unitypackage", tmp_path / "out")

    def test_package_is_directory(self, tmp_path):
        with pytest.raises(ArchiveError):
            UnityPackageExtractor(tmp_path, tmp_path / "out")

    def test_target_is_file(self, two_asset_package, tmp_path):
        target = tmp_path / "target.txt"
        target.write_text("not a directory")

        with pytest.raises(NotADirectoryError):
            UnityPackageExtractor(two_asset_package, target)

"""Fixtures for building .unitypackage files in tests."""

import io
import tarfile
from pathlib import Path
from typing import List, Optional, Tuple

import pytest

Member = Tuple[str, bytes]
Group = Tuple[str, List[Member]]


def asset_group(
    guid: str,
    pathname: str,
    asset: bytes,
    meta: bytes = b"fileFormatVersion: 2\n",
    preview: Optional[bytes] = None,
) -> Group:
    """Members of one asset group, in the order Unity writes them."""
    members = [("asset", asset), ("asset.meta", meta)]
    if preview is not None:
        members.append(("preview.png", preview))
    members.append(("pathname", pathname.encode("utf-8")))
    return guid, members


def write_package(path: Path, groups: List[Group]) -> Path:
    """Write groups to a gzip-compressed tar, one directory per group."""
    with tarfile.open(path, "w:gz") as tf:
        for guid, members in groups:
            dir_info = tarfile.TarInfo(name=guid)
            dir_info.type = tarfile.DIRTYPE
            dir_info.mode = 0o755
            tf.addfile(dir_info)

            for name, data in members:
                info = tarfile.TarInfo(name=f"{guid}/{name}")
                info.size = len(data)
                tf.addfile(info, io.BytesIO(data))
    return path


@pytest.fixture
def make_package(tmp_path):
    """Factory writing a package under tmp_path."""

    def _make(groups: List[Group], name: str = "test.unitypackage") -> Path:
        return write_package(tmp_path / name, groups)

    return _make


@pytest.fixture
def two_asset_package(make_package):
    """Two assets under foo/, each with distinct metadata."""
    return make_package([
        asset_group("a1", "foo/bar.txt", b"hello", meta=b"m1"),
        asset_group("a2", "foo/baz.txt", b"world", meta=b"m2"),
    ])


@pytest.fixture
def out_dir(tmp_path):
    return tmp_path / "out"

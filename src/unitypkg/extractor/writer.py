"""Write extracted assets to disk."""

import logging
from pathlib import Path
from typing import Optional

import aiofiles
import aiofiles.os

from .errors import AssetWriteError

logger = logging.getLogger(__name__)

META_SUFFIX = ".meta"


async def _write_file(path: Path, data: bytes) -> None:
    async with aiofiles.open(path, "wb") as f:
        await f.write(data)


async def write_asset(
    base_dir: Path,
    output_path: str,
    data: bytes,
    meta: Optional[bytes] = None,
) -> int:
    """Write one asset, and optionally its ``.meta`` sibling.

    Args:
        base_dir: Extraction target directory
        output_path: Resolved path relative to base_dir
        data: Asset content
        meta: Importer settings to write as ``<output_path>.meta``, or None

    Returns:
        Number of bytes written

    Raises:
        AssetWriteError: If a directory or file cannot be created
    """
    asset_file = Path(base_dir) / output_path
    written = 0

    try:
        await aiofiles.os.makedirs(asset_file.parent, exist_ok=True)
        await _write_file(asset_file, data)
        written += len(data)

        if meta is not None:
            await _write_file(asset_file.with_name(asset_file.name + META_SUFFIX), meta)
            written += len(meta)
    except OSError as e:
        raise AssetWriteError(output_path, str(e)) from e

    logger.debug(f"Wrote {output_path} ({written} bytes)")
    return written

"""Map logical asset paths to output paths."""

from pathlib import Path, PurePosixPath
from typing import Optional


def resolve_output_path(logical_path: str, filter_prefix: Optional[str] = None) -> Optional[str]:
    """Compute the output path of an asset relative to the target directory.

    The filter is matched by whole path components: ``Assets/Art`` matches
    ``Assets/Art/tree.png`` but not ``Assets/Artwork/tree.png``.

    Args:
        logical_path: Project path from the asset's ``pathname`` member
        filter_prefix: Optional directory to extract from, removed from the
            front of every output path

    Returns:
        Relative output path, or None if the asset lies outside the filter

    Examples:
        >>> resolve_output_path("Assets/Art/tree.png")
        'Assets/Art/tree.png'
        >>> resolve_output_path("Assets/Art/tree.png", "Assets")
        'Art/tree.png'
        >>> resolve_output_path("Assets/Artwork/tree.png", "Assets/Art") is None
        True
    """
    if filter_prefix is None:
        return logical_path

    try:
        relative = PurePosixPath(logical_path).relative_to(PurePosixPath(filter_prefix))
    except ValueError:
        return None

    # The filter names the asset itself, nothing is left to write
    if relative == PurePosixPath("."):
        return None
    return str(relative)


def is_safe_output_path(base_dir: Path, relative_path: str) -> bool:
    """Check that an output path stays inside the target directory.

    Args:
        base_dir: Extraction target directory
        relative_path: Resolved output path of an asset

    Returns:
        True if safe, False for absolute paths or ``..`` escapes
    """
    if not relative_path or PurePosixPath(relative_path).is_absolute():
        return False
    base = Path(base_dir).resolve()
    target = (base / relative_path).resolve()
    return target != base and target.is_relative_to(base)

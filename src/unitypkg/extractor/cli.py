"""CLI command for extracting Unity packages."""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from unitypkg import __version__
from unitypkg.common import ConfigLoader, ConfigurationError, UnityPkgError, setup_logging

from .config import ExtractorConfig
from .extractor import UnityPackageExtractor

# Application name derived from package name
_package = __package__ or "unitypkg.extractor"
APP_NAME = _package.replace('_', '-').replace('.', '-')


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="unitypkg-extract",
        description="Extract the assets of a .unitypackage into a directory tree"
    )
    parser.add_argument("package", type=Path, help="Package file to extract")
    parser.add_argument("output_dir", type=Path, help="Directory to extract to")
    parser.add_argument(
        "-p", "--prefix",
        help="Extract only assets under this path, with the prefix removed"
    )
    parser.add_argument(
        "-m", "--meta",
        action="store_true",
        help="Also extract .meta files"
    )
    parser.add_argument(
        "-d", "--dry",
        action="store_true",
        help="Dry run: decode the package but never write files"
    )
    parser.add_argument(
        "-c", "--max-concurrency",
        type=int,
        help="Maximum number of files written concurrently (default: 256)"
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail on incomplete asset groups instead of skipping them"
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to config file (defaults.toml)"
    )
    parser.add_argument(
        "--log-level",
        help="Override the configured log level"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def apply_overrides(config: ExtractorConfig, args: argparse.Namespace) -> ExtractorConfig:
    """Return a copy of config with command-line flags applied on top."""
    extraction = {}
    if args.prefix is not None:
        extraction["filter_prefix"] = args.prefix
    if args.meta:
        extraction["include_meta"] = True
    if args.dry:
        extraction["dry_run"] = True
    if args.max_concurrency is not None:
        extraction["max_concurrency"] = args.max_concurrency
    if args.strict:
        extraction["strict"] = True

    data = config.model_dump()
    data["extraction"].update(extraction)
    if args.log_level:
        data["logging"]["level"] = args.log_level
    return ExtractorConfig.model_validate(data)


def extract_command(config: ExtractorConfig, package: Path, output_dir: Path) -> int:
    """Extract one package.

    Args:
        config: Configuration object with overrides applied
        package: Package file to extract
        output_dir: Directory to extract to

    Returns:
        Exit code (0 for success)
    """
    logger = logging.getLogger(__package__ or __name__)

    try:
        extractor = UnityPackageExtractor.from_config(package, output_dir, config.extraction)
        summary = extractor.run()
    except (UnityPkgError, OSError) as e:
        logger.error(f"Extraction failed: {e}")
        logger.debug("Extraction failure details", exc_info=True)
        return 1

    if summary.dry_run:
        logger.info(f"Dry run complete: {summary.records_dispatched} asset(s) would be extracted")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for extract command."""
    args = build_parser().parse_args(argv)

    loader = ConfigLoader(app_name=APP_NAME, config_class=ExtractorConfig)
    try:
        config = apply_overrides(loader.load(defaults_path=args.config), args)
    except ConfigurationError as e:
        setup_logging()
        logging.getLogger(__package__ or __name__).error(str(e))
        return 1
    except ValueError as e:
        # pydantic ValidationError from command-line overrides
        setup_logging()
        logging.getLogger(__package__ or __name__).error(f"Invalid arguments: {e}")
        return 2

    setup_logging(
        level=config.logging.level,
        format_type=config.logging.format,
        log_file=config.logging.file,
        max_file_size_mb=config.logging.max_file_size_mb,
        backup_count=config.logging.backup_count,
    )

    return extract_command(config, args.package, args.output_dir)


if __name__ == "__main__":
    sys.exit(main())

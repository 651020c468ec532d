"""High-level extraction of a ``.unitypackage`` into a directory tree."""

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from unitypkg.common import LogContext

from .assembler import AssetRecord, RecordAssembler
from .config import ExtractionConfig
from .dispatcher import AssetWriter, ExtractionDispatcher, WriteOutcome
from .errors import ArchiveError, AssetWriteError, ExtractionError
from .resolver import is_safe_output_path, resolve_output_path
from .source import EntrySource
from .writer import write_asset

logger = logging.getLogger(__name__)


@dataclass
class ExtractionSummary:
    """Counters for one extraction run."""
    records_assembled: int = 0
    records_dispatched: int = 0
    skipped_by_filter: int = 0
    skipped_unsafe: int = 0
    groups_dropped: int = 0
    written: int = 0
    failed: int = 0
    bytes_written: int = 0
    dry_run: bool = False


class UnityPackageExtractor:
    """Decodes a package and writes its assets under a target directory."""

    def __init__(
        self,
        archive_path: Path,
        target_dir: Path,
        filter_prefix: Optional[str] = None,
        include_meta: bool = False,
        dry_run: bool = False,
        max_concurrency: int = 256,
        strict: bool = False,
        writer: AssetWriter = write_asset,
    ):
        """Initialize the extractor.

        Args:
            archive_path: Package file to read
            target_dir: Directory to extract into (created if missing)
            filter_prefix: Only extract assets under this path, relative to it
            include_meta: Also write ``<asset>.meta`` files
            dry_run: Decode and resolve everything without writing
            max_concurrency: Maximum number of writes in flight
            strict: Fail on incomplete asset groups instead of dropping them
            writer: Coroutine used to write each asset

        Raises:
            FileNotFoundError: If the package does not exist
            ArchiveError: If the package path is not a file
            NotADirectoryError: If target_dir exists but is not a directory
        """
        self.archive_path = Path(archive_path)
        self.target_dir = Path(target_dir)

        if not self.archive_path.exists():
            raise FileNotFoundError(f"Package not found: {archive_path}")
        if not self.archive_path.is_file():
            raise ArchiveError(f"Package path is not a file: {archive_path}", archive=str(archive_path))
        if self.target_dir.exists() and not self.target_dir.is_dir():
            raise NotADirectoryError(f"Target path is not a directory: {target_dir}")

        self.filter_prefix = filter_prefix
        self.include_meta = include_meta
        self.dry_run = dry_run
        self.max_concurrency = max_concurrency
        self.strict = strict
        self.writer = writer

    @classmethod
    def from_config(
        cls, archive_path: Path, target_dir: Path, config: ExtractionConfig
    ) -> "UnityPackageExtractor":
        return cls(
            archive_path,
            target_dir,
            filter_prefix=config.filter_prefix,
            include_meta=config.include_meta,
            dry_run=config.dry_run,
            max_concurrency=config.max_concurrency,
            strict=config.strict,
        )

    def run(self) -> ExtractionSummary:
        """Synchronous wrapper around :meth:`extract`."""
        return asyncio.run(self.extract())

    async def extract(self) -> ExtractionSummary:
        """Extract every in-scope asset of the package.

        Members are decoded one at a time; each completed asset is resolved
        and handed to the dispatcher, which may suspend decoding while all
        write slots are busy. All dispatched writes are awaited before this
        returns or raises, including when decoding fails part way.

        Returns:
            Summary of the run

        Raises:
            CorruptedArchiveError: If the package stream cannot be read
            UnknownMemberError: If an asset group has an unrecognized member
            MalformedArchiveError: If the grouping layout is broken
            PathnameEncodingError: If an asset path is not valid UTF-8
            ExtractionError: If any asset could not be written
        """
        summary = ExtractionSummary(dry_run=self.dry_run)
        assembler = RecordAssembler(strict=self.strict)
        dispatcher = ExtractionDispatcher(
            self.max_concurrency, dry_run=self.dry_run, writer=self.writer
        )

        with LogContext(logger, archive=self.archive_path.name):
            logger.info(
                f"Extracting {self.archive_path} to {self.target_dir}"
                + (" (dry run)" if self.dry_run else "")
            )
            if not self.dry_run:
                self._prepare_target()

            try:
                with EntrySource(self.archive_path) as source:
                    async for entry in source:
                        record = assembler.feed(entry)
                        if record is not None:
                            summary.records_assembled += 1
                            await self._dispatch(record, dispatcher, summary)
                    assembler.finish()
            finally:
                outcomes = await dispatcher.drain()
                summary.groups_dropped = assembler.groups_dropped
                self._tally(outcomes, summary)

            logger.info(
                f"Extraction complete: {summary.written} written, "
                f"{summary.skipped_by_filter} filtered, {summary.skipped_unsafe} unsafe, "
                f"{summary.failed} failed",
                extra={"extra_fields": {
                    "records": summary.records_assembled,
                    "bytes_written": summary.bytes_written,
                    "peak_in_flight": dispatcher.peak_in_flight,
                }},
            )

        failures = [(o.output_path, o.error) for o in outcomes if not o.ok]
        if failures:
            raise ExtractionError(failures)
        return summary

    def _prepare_target(self) -> None:
        try:
            self.target_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise AssetWriteError(str(self.target_dir), str(e)) from e

    async def _dispatch(
        self,
        record: AssetRecord,
        dispatcher: ExtractionDispatcher,
        summary: ExtractionSummary,
    ) -> None:
        output_path = resolve_output_path(record.logical_path, self.filter_prefix)
        if output_path is None:
            summary.skipped_by_filter += 1
            logger.debug(f"Skipping \"{record.logical_path}\" (outside {self.filter_prefix})")
            return

        if not is_safe_output_path(self.target_dir, output_path):
            summary.skipped_unsafe += 1
            logger.warning(f"Skipping unsafe path: {record.logical_path}")
            return

        logger.info(f"Extracting \"{output_path}\" ({record.size} bytes)")
        await dispatcher.dispatch(record, output_path, self.target_dir, self.include_meta)
        summary.records_dispatched += 1

    def _tally(self, outcomes: List[WriteOutcome], summary: ExtractionSummary) -> None:
        for outcome in outcomes:
            if not outcome.ok:
                summary.failed += 1
            elif not self.dry_run:
                summary.written += 1
                summary.bytes_written += outcome.bytes_written

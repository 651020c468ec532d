"""Decode Unity packages and extract their assets."""

from .assembler import AssetRecord, RecordAssembler, assemble_records
from .config import ExtractionConfig, ExtractorConfig, LoggingConfig
from .dispatcher import ExtractionDispatcher, WriteOutcome
from .errors import (
    ArchiveError, AssetWriteError, CorruptedArchiveError, ExtractionError,
    MalformedArchiveError, PathnameEncodingError, UnknownMemberError
)
from .extractor import ExtractionSummary, UnityPackageExtractor
from .resolver import is_safe_output_path, resolve_output_path
from .source import EntrySource, RawEntry
from .writer import write_asset

__all__ = [
    'AssetRecord',
    'RecordAssembler',
    'assemble_records',
    'ExtractionConfig',
    'ExtractorConfig',
    'LoggingConfig',
    'ExtractionDispatcher',
    'WriteOutcome',
    'ArchiveError',
    'AssetWriteError',
    'CorruptedArchiveError',
    'ExtractionError',
    'MalformedArchiveError',
    'PathnameEncodingError',
    'UnknownMemberError',
    'ExtractionSummary',
    'UnityPackageExtractor',
    'is_safe_output_path',
    'resolve_output_path',
    'EntrySource',
    'RawEntry',
    'write_asset',
]

"""Regroup package members into asset records.

A ``.unitypackage`` stores every asset as a directory named after its GUID::

    0a1b.../            <- group boundary, becomes the active prefix
    0a1b.../asset       <- file content
    0a1b.../asset.meta  <- importer settings
    0a1b.../pathname    <- project path, e.g. "Assets/Models/Tree.fbx"
    0a1b.../preview.png <- optional thumbnail, ignored

Members of one group arrive contiguously. :class:`RecordAssembler` consumes
them one at a time and emits an :class:`AssetRecord` as soon as the
``asset``, ``asset.meta`` and ``pathname`` members of a group have all been
seen.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional

from .errors import MalformedArchiveError, PathnameEncodingError, UnknownMemberError
from .source import RawEntry

logger = logging.getLogger(__name__)

ASSET_MEMBER = "asset"
META_MEMBER = "asset.meta"
PATHNAME_MEMBER = "pathname"
PREVIEW_MEMBER = "preview.png"


@dataclass(frozen=True)
class AssetRecord:
    """A fully assembled asset, ready for extraction."""
    prefix: str
    logical_path: str
    data: bytes
    meta: bytes

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass
class PendingRecord:
    """Accumulator for the asset group currently being read."""
    prefix: str = ""
    data: bytes = b""
    meta: bytes = b""
    logical_path: str = ""
    data_seen: bool = False
    meta_seen: bool = False
    path_seen: bool = False
    members_seen: int = 0

    @property
    def is_complete(self) -> bool:
        return self.data_seen and self.meta_seen and self.path_seen

    def to_record(self) -> AssetRecord:
        return AssetRecord(
            prefix=self.prefix,
            logical_path=self.logical_path,
            data=self.data,
            meta=self.meta,
        )


def decode_pathname(prefix: str, raw: bytes) -> str:
    """Decode the content of a ``pathname`` member.

    Only the first line is the project path, taken verbatim apart from its
    line ending; some exporters append a second line.
    """
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise PathnameEncodingError(prefix, str(e)) from e

    lines = text.splitlines()
    path = lines[0] if lines else ""
    if not path.strip():
        raise MalformedArchiveError(
            f"Empty pathname in asset group '{prefix}'", prefix=prefix
        )
    return path


class RecordAssembler:
    """Streaming state machine that turns members into asset records.

    Holds at most one in-progress record. The accumulator is replaced, not
    cleared, at every group boundary and after every emitted record.

    Args:
        strict: Raise MalformedArchiveError for groups that received members
            but never completed, instead of dropping them with a warning
    """

    def __init__(self, strict: bool = False):
        self.strict = strict
        self.active_prefix = ""
        self.pending = PendingRecord()
        self.records_emitted = 0
        self.groups_dropped = 0

    def feed(self, entry: RawEntry) -> Optional[AssetRecord]:
        """Consume one member, returning a record when its group completes.

        Raises:
            UnknownMemberError: If a group contains an unrecognized member
            PathnameEncodingError: If a pathname is not valid UTF-8
            MalformedArchiveError: On an empty pathname, or an incomplete
                group in strict mode
        """
        path = entry.path

        if not self.active_prefix or not path.startswith(self.active_prefix):
            self._drop_incomplete()
            self.active_prefix = path
            self.pending = PendingRecord(prefix=path)
            return None

        suffix = path.removeprefix(self.active_prefix)
        pending = self.pending
        if suffix == ASSET_MEMBER:
            pending.data_seen = True
            pending.data = entry.data
        elif suffix == META_MEMBER:
            pending.meta_seen = True
            pending.meta = entry.data
        elif suffix == PATHNAME_MEMBER:
            pending.path_seen = True
            pending.logical_path = decode_pathname(self.active_prefix, entry.data)
        elif suffix == PREVIEW_MEMBER:
            pass
        else:
            raise UnknownMemberError(suffix, self.active_prefix)
        pending.members_seen += 1

        if not pending.is_complete:
            return None

        record = pending.to_record()
        self.records_emitted += 1
        self.active_prefix = ""
        self.pending = PendingRecord()
        return record

    def finish(self) -> None:
        """Signal end of input; handles a trailing incomplete group."""
        self._drop_incomplete()
        self.active_prefix = ""
        self.pending = PendingRecord()

    def _drop_incomplete(self) -> None:
        pending = self.pending
        if pending.members_seen == 0:
            return

        missing = [
            name
            for name, seen in (
                (ASSET_MEMBER, pending.data_seen),
                (META_MEMBER, pending.meta_seen),
                (PATHNAME_MEMBER, pending.path_seen),
            )
            if not seen
        ]
        if self.strict:
            raise MalformedArchiveError(
                f"Asset group '{pending.prefix}' is missing {', '.join(missing)}",
                prefix=pending.prefix,
                missing=missing,
            )

        self.groups_dropped += 1
        logger.warning(
            f"Dropping incomplete asset group '{pending.prefix}' (missing {', '.join(missing)})"
        )


def assemble_records(entries: Iterable[RawEntry], strict: bool = False) -> Iterator[AssetRecord]:
    """Yield asset records from members in archive order."""
    assembler = RecordAssembler(strict=strict)
    for entry in entries:
        record = assembler.feed(entry)
        if record is not None:
            yield record
    assembler.finish()

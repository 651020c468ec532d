"""Sequential reader over the members of a gzip-compressed package."""

import asyncio
import logging
import tarfile
import zlib
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncIterator, Iterator, Optional

from .errors import CorruptedArchiveError

logger = logging.getLogger(__name__)

# Raised by tarfile/gzip/zlib on a damaged or truncated stream
_STREAM_ERRORS = (tarfile.TarError, zlib.error, EOFError, OSError)


@dataclass(frozen=True)
class RawEntry:
    """One archive member, in archive order."""
    path: str
    data: bytes
    size: int


class EntrySource:
    """Iterates over (path, bytes) pairs of a ``.unitypackage`` in archive order.

    The archive is opened in tar streaming mode (``r|gz``), so members are
    read strictly front to back and each member's content is only available
    until the next one is requested. Directory members keep their trailing
    slash so that group prefixes look the way they are stored.

    Usable as a context manager, a plain iterator, or an async iterator. The
    async form performs each blocking read in a worker thread.
    """

    def __init__(self, archive_path: Path):
        self.archive_path = Path(archive_path)
        self._tar: Optional[tarfile.TarFile] = None
        self.entries_read = 0

    def open(self) -> "EntrySource":
        if self._tar is None:
            try:
                self._tar = tarfile.open(str(self.archive_path), mode="r|gz")
            except (tarfile.TarError, zlib.error, EOFError) as e:
                raise CorruptedArchiveError(
                    f"Not a gzip-compressed package: {self.archive_path}: {e}",
                    archive=str(self.archive_path),
                ) from e
            logger.debug(f"Opened package stream {self.archive_path}")
        return self

    def close(self) -> None:
        if self._tar is not None:
            self._tar.close()
            self._tar = None

    def __enter__(self) -> "EntrySource":
        return self.open()

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def read_next(self) -> Optional[RawEntry]:
        """Read the next member, or return None at end of archive.

        Raises:
            CorruptedArchiveError: If the gzip or tar stream is damaged
        """
        self.open()
        try:
            member = self._tar.next()
            if member is None:
                return None

            data = b""
            if member.isfile():
                fileobj = self._tar.extractfile(member)
                data = fileobj.read()
        except _STREAM_ERRORS as e:
            raise CorruptedArchiveError(
                f"Failed to read package {self.archive_path} after "
                f"{self.entries_read} entries: {e}",
                archive=str(self.archive_path),
                entries_read=self.entries_read,
            ) from e

        path = member.name
        # tarfile drops the trailing slash of directory members
        if member.isdir() and not path.endswith("/"):
            path += "/"

        self.entries_read += 1
        return RawEntry(path=path, data=data, size=len(data))

    def __iter__(self) -> Iterator[RawEntry]:
        while (entry := self.read_next()) is not None:
            yield entry

    async def __aiter__(self) -> AsyncIterator[RawEntry]:
        while (entry := await asyncio.to_thread(self.read_next)) is not None:
            yield entry

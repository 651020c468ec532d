"""Bounded-concurrency scheduling of asset writes.

Two separate mechanisms:

- Admission gate: an ``asyncio.Semaphore`` with ``max_concurrency`` slots.
  :meth:`ExtractionDispatcher.dispatch` waits for a free slot before
  scheduling a write, which suspends the decode loop while the gate is
  saturated and bounds how many decoded assets are held in memory.
- Completion barrier: :meth:`ExtractionDispatcher.drain` awaits every
  scheduled task and returns one :class:`WriteOutcome` per dispatch.

Write failures never escape a task. They are recorded on the outcome so
that every slot is released and the barrier always completes.
"""

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable, List, Optional

from .assembler import AssetRecord
from .writer import write_asset

logger = logging.getLogger(__name__)

AssetWriter = Callable[[Path, str, bytes, Optional[bytes]], Awaitable[int]]


def _detach_traceback(error: BaseException) -> BaseException:
    """Drop the traceback of error and every exception chained to it.

    Stored errors must not keep the frames of the failed write, whose
    locals include the asset bytes.
    """
    seen = set()
    current: Optional[BaseException] = error
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        current.__traceback__ = None
        current = current.__cause__ or current.__context__
    return error


@dataclass
class WriteOutcome:
    """Result of one dispatched asset."""
    logical_path: str
    output_path: str
    bytes_written: int = 0
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ExtractionDispatcher:
    """Schedules one independent write task per asset record.

    Args:
        max_concurrency: Number of writes allowed in flight at once
        dry_run: Acquire and release slots but skip the write itself
        writer: Coroutine performing the write, ``write_asset`` by default
    """

    def __init__(
        self,
        max_concurrency: int,
        dry_run: bool = False,
        writer: AssetWriter = write_asset,
    ):
        if max_concurrency < 1:
            raise ValueError(f"max_concurrency must be positive, got {max_concurrency}")

        self.max_concurrency = max_concurrency
        self.dry_run = dry_run
        self._writer = writer
        self._gate = asyncio.Semaphore(max_concurrency)
        self._tasks: List["asyncio.Task[WriteOutcome]"] = []
        self._in_flight = 0
        self.peak_in_flight = 0

    @property
    def in_flight(self) -> int:
        """Number of tasks currently holding a slot."""
        return self._in_flight

    @property
    def dispatched(self) -> int:
        """Number of tasks scheduled since creation."""
        return len(self._tasks)

    async def dispatch(
        self,
        record: AssetRecord,
        output_path: str,
        base_dir: Path,
        include_meta: bool = False,
    ) -> None:
        """Wait for a free slot, then schedule the write of one record."""
        await self._gate.acquire()
        self._in_flight += 1
        self.peak_in_flight = max(self.peak_in_flight, self._in_flight)

        task = asyncio.create_task(
            self._run(record, output_path, Path(base_dir), include_meta),
            name=f"extract:{output_path}",
        )
        self._tasks.append(task)

    async def _run(
        self,
        record: AssetRecord,
        output_path: str,
        base_dir: Path,
        include_meta: bool,
    ) -> WriteOutcome:
        outcome = WriteOutcome(logical_path=record.logical_path, output_path=output_path)
        try:
            if not self.dry_run:
                outcome.bytes_written = await self._writer(
                    base_dir,
                    output_path,
                    record.data,
                    record.meta if include_meta else None,
                )
        except Exception as e:
            # Reported by the caller after drain()
            outcome.error = _detach_traceback(e)
            logger.error(
                f"Failed to extract \"{output_path}\": {e}",
                extra={"extra_fields": {"prefix": record.prefix, "output_path": output_path}},
            )
        finally:
            self._in_flight -= 1
            self._gate.release()
        return outcome

    async def drain(self) -> List[WriteOutcome]:
        """Wait until every dispatched write has finished.

        Returns:
            Outcomes in dispatch order
        """
        if not self._tasks:
            return []

        logger.debug(f"Waiting for {self._in_flight} in-flight write(s)")
        outcomes = await asyncio.gather(*self._tasks)
        return list(outcomes)

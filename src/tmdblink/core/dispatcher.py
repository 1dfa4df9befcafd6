"""Bounded concurrent dispatch of TMDB lookups."""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import Protocol

from tmdblink.error_handling import WorkerPoolError
from tmdblink.services.tmdb import LookupFailure, LookupResult, MatchedRecord

logger = logging.getLogger(__name__)

Lookup = Callable[[str], Awaitable[LookupResult]]


class RecordSink(Protocol):
    async def record(self, record: MatchedRecord) -> None: ...


@dataclass
class BatchSummary:
    """Outcome counts for one batch. ``matched + failed == total``."""

    total: int
    matched: int = 0
    failures: list[LookupFailure] = field(default_factory=list)
    peak_in_flight: int = 0

    @property
    def failed(self) -> int:
        return len(self.failures)


class BoundedDispatcher:
    """Fan identifiers out to at most ``max_workers`` concurrent lookups.

    A slot is acquired before each worker task is spawned, so dispatch of the
    next identifier waits while every slot is busy. Each worker runs its
    lookup and handles the result (sink write or failure log) before giving
    its slot back. ``run`` returns only after every identifier has reached
    that terminal state.
    """

    def __init__(self, max_workers: int):
        if max_workers < 1:
            raise WorkerPoolError(
                f"Cannot build a worker pool with {max_workers} workers",
            )
        self.max_workers = max_workers
        self._in_flight = 0
        self._fatal: BaseException | None = None

    async def run(
        self,
        imdb_ids: Sequence[str],
        lookup: Lookup,
        sink: RecordSink,
    ) -> BatchSummary:
        summary = BatchSummary(total=len(imdb_ids))
        slots = asyncio.Semaphore(self.max_workers)
        tasks: list[asyncio.Task] = []
        self._fatal = None

        logger.info(
            "Dispatching %s lookups with %s workers",
            len(imdb_ids),
            self.max_workers,
        )

        try:
            for imdb_id in imdb_ids:
                await slots.acquire()
                if self._fatal is not None:
                    slots.release()
                    break
                task = asyncio.create_task(
                    self._work(imdb_id, lookup, sink, slots, summary),
                )
                tasks.append(task)

            await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        logger.info(
            "Batch complete: %s matched, %s failed",
            summary.matched,
            summary.failed,
        )
        return summary

    async def _work(
        self,
        imdb_id: str,
        lookup: Lookup,
        sink: RecordSink,
        slots: asyncio.Semaphore,
        summary: BatchSummary,
    ) -> None:
        try:
            self._in_flight += 1
            summary.peak_in_flight = max(summary.peak_in_flight, self._in_flight)
            try:
                result = await lookup(imdb_id)
            finally:
                self._in_flight -= 1

            if isinstance(result, MatchedRecord):
                logger.info("%s -> %s", imdb_id, result.tmdb_id)
                await sink.record(result)
                summary.matched += 1
            else:
                logger.warning(result.message)
                summary.failures.append(result)
        except Exception as e:
            # Recorded before the slot is released so admission stops at once.
            if self._fatal is None:
                self._fatal = e
            raise
        finally:
            slots.release()


__all__ = ["BatchSummary", "BoundedDispatcher", "Lookup", "RecordSink"]

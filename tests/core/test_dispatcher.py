"""Tests for bounded dispatch and the completion barrier."""

import asyncio
import logging
import random

import pytest

from tmdblink.core.dispatcher import BoundedDispatcher
from tmdblink.error_handling import WorkerPoolError
from tmdblink.services.tmdb import FailureCause, LookupFailure, MatchedRecord


class RecordingSink:
    """In-memory sink that yields mid-write to expose interleaving."""

    def __init__(self):
        self.records: list[MatchedRecord] = []

    async def record(self, record: MatchedRecord) -> None:
        await asyncio.sleep(0)
        self.records.append(record)


class FailingSink:
    async def record(self, record: MatchedRecord) -> None:
        raise OSError("disk full")


def _match(imdb_id: str) -> MatchedRecord:
    return MatchedRecord(
        tmdb_id=int(imdb_id[2:]),
        poster_path="/p.jpg",
        language="en",
        imdb_id=imdb_id,
    )


def _no_match(imdb_id: str) -> LookupFailure:
    return LookupFailure(imdb_id, FailureCause.NO_MATCH, f"No results for imdb: {imdb_id}")


class ConcurrencyTracker:
    """Lookup that tracks how many calls are running at once."""

    def __init__(self, fail_every: int = 0):
        self.active = 0
        self.peak = 0
        self.calls: list[str] = []
        self.fail_every = fail_every

    async def __call__(self, imdb_id: str):
        self.calls.append(imdb_id)
        self.active += 1
        self.peak = max(self.peak, self.active)
        try:
            await asyncio.sleep(random.uniform(0, 0.003))
        finally:
            self.active -= 1
        if self.fail_every and len(self.calls) % self.fail_every == 0:
            return _no_match(imdb_id)
        return _match(imdb_id)


class TestBoundedDispatcher:
    """Test dispatch, isolation and completion."""

    def test_rejects_empty_pool(self):
        with pytest.raises(WorkerPoolError):
            BoundedDispatcher(0)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("workers", [1, 2, 5])
    async def test_never_exceeds_worker_bound(self, workers):
        tracker = ConcurrencyTracker()
        ids = [f"tt{i:07d}" for i in range(40)]

        summary = await BoundedDispatcher(workers).run(ids, tracker, RecordingSink())

        assert tracker.peak <= workers
        assert summary.peak_in_flight <= workers
        assert summary.peak_in_flight == tracker.peak

    @pytest.mark.asyncio
    async def test_every_id_reaches_one_terminal_event(self):
        tracker = ConcurrencyTracker(fail_every=3)
        sink = RecordingSink()
        ids = [f"tt{i:07d}" for i in range(30)]

        summary = await BoundedDispatcher(2).run(ids, tracker, sink)

        assert summary.total == 30
        assert summary.matched + summary.failed == 30
        assert len(sink.records) == summary.matched
        assert sorted(tracker.calls) == sorted(ids)

        written = [record.imdb_id for record in sink.records]
        failed = [failure.imdb_id for failure in summary.failures]
        assert len(set(written)) == len(written)
        assert sorted(written + failed) == sorted(ids)

    @pytest.mark.asyncio
    async def test_duplicate_ids_are_each_dispatched(self):
        tracker = ConcurrencyTracker()
        sink = RecordingSink()

        summary = await BoundedDispatcher(2).run(["tt1", "tt1"], tracker, sink)

        assert tracker.calls == ["tt1", "tt1"]
        assert summary.matched == 2

    @pytest.mark.asyncio
    async def test_failure_does_not_stop_siblings(self, caplog):
        async def lookup(imdb_id):
            if imdb_id == "tt1":
                return LookupFailure(
                    imdb_id,
                    FailureCause.UNEXPECTED_STATUS,
                    "Weird status code 500 for imdb: tt1",
                    status_code=500,
                )
            return _match(imdb_id)

        sink = RecordingSink()
        with caplog.at_level(logging.INFO):
            summary = await BoundedDispatcher(2).run(
                ["tt1", "tt2", "tt3"],
                lookup,
                sink,
            )

        assert summary.failed == 1
        assert sorted(r.imdb_id for r in sink.records) == ["tt2", "tt3"]
        assert "Weird status code 500 for imdb: tt1" in caplog.text
        assert "tt2 -> 2" in caplog.text

    @pytest.mark.asyncio
    async def test_blocks_admission_while_slots_busy(self):
        release = asyncio.Event()
        started: list[str] = []

        async def lookup(imdb_id):
            started.append(imdb_id)
            await release.wait()
            return _match(imdb_id)

        dispatcher = BoundedDispatcher(2)
        run = asyncio.create_task(
            dispatcher.run(["tt1", "tt2", "tt3", "tt4"], lookup, RecordingSink()),
        )
        for _ in range(10):
            await asyncio.sleep(0)

        assert started == ["tt1", "tt2"]
        assert not run.done()

        release.set()
        summary = await run

        assert summary.matched == 4

    @pytest.mark.asyncio
    async def test_empty_batch(self):
        summary = await BoundedDispatcher(2).run([], ConcurrencyTracker(), RecordingSink())

        assert summary.total == 0
        assert summary.matched == 0
        assert summary.failed == 0

    @pytest.mark.asyncio
    async def test_sink_error_aborts_batch(self):
        tracker = ConcurrencyTracker()

        with pytest.raises(OSError):
            await BoundedDispatcher(2).run(
                [f"tt{i}" for i in range(20)],
                tracker,
                FailingSink(),
            )

        assert len(tracker.calls) < 20

    @pytest.mark.asyncio
    async def test_sink_error_stops_admission_immediately(self):
        tracker = ConcurrencyTracker()

        with pytest.raises(OSError):
            await BoundedDispatcher(1).run(
                [f"tt{i}" for i in range(5)],
                tracker,
                FailingSink(),
            )

        assert tracker.calls == ["tt0"]

    @pytest.mark.asyncio
    async def test_sink_error_does_not_wait_for_busy_slots(self):
        never = asyncio.Event()
        calls: list[str] = []

        async def lookup(imdb_id):
            calls.append(imdb_id)
            if imdb_id == "tt1":
                await never.wait()
            return _match(imdb_id)

        with pytest.raises(OSError):
            await asyncio.wait_for(
                BoundedDispatcher(2).run(
                    ["tt1", "tt2", "tt3", "tt4"],
                    lookup,
                    FailingSink(),
                ),
                timeout=2,
            )

        assert calls == ["tt1", "tt2"]

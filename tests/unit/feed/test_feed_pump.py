"""
Unit tests for FeedPump.

Tests cover:
- Eager drains and cursor monotonicity
- Retry-skip: cursor held back, later entries still delivered
- Handler failures
- Sync and async handlers
- The polling loop
"""

import asyncio

import pytest

from eventclient.feed.cursor import FeedCursor
from eventclient.feed.models import FeedEntry
from eventclient.feed.outcome import Advance, EntryDirective, Fail, Retry
from eventclient.feed.pump import DrainResult, FeedPump
from eventclient.observability import MockTracer
from tests.fixtures import ScriptedFeed, make_entry


def make_pump(feed: ScriptedFeed, tracer: MockTracer | None = None) -> FeedPump:
    return FeedPump(feed, feed_name="order", tracer=tracer, enable_tracing=False)


class TestDeliver:
    @pytest.mark.asyncio
    async def test_none_advances(self):
        outcome = await make_pump(ScriptedFeed([])).deliver(make_entry(4), lambda entry: None)

        assert outcome == Advance(4)

    @pytest.mark.asyncio
    async def test_advance_directive_advances(self):
        outcome = await make_pump(ScriptedFeed([])).deliver(
            make_entry(4), lambda entry: EntryDirective.ADVANCE
        )

        assert outcome == Advance(4)

    @pytest.mark.asyncio
    async def test_retry_directive(self):
        outcome = await make_pump(ScriptedFeed([])).deliver(
            make_entry(4), lambda entry: EntryDirective.RETRY
        )

        assert outcome == Retry(4)

    @pytest.mark.asyncio
    async def test_exception_becomes_fail(self):
        error = RuntimeError("handler broke")

        def handler(entry: FeedEntry) -> None:
            raise error

        outcome = await make_pump(ScriptedFeed([])).deliver(make_entry(4), handler)

        assert isinstance(outcome, Fail)
        assert outcome.sequence_number == 4
        assert outcome.error is error

    @pytest.mark.asyncio
    async def test_async_handler(self):
        async def handler(entry: FeedEntry) -> EntryDirective:
            await asyncio.sleep(0)
            return EntryDirective.RETRY

        outcome = await make_pump(ScriptedFeed([])).deliver(make_entry(4), handler)

        assert outcome == Retry(4)


class TestDrain:
    @pytest.mark.asyncio
    async def test_drain_from_since_ends_at_last_entry(self):
        feed = ScriptedFeed(range(4, 14))
        cursor = FeedCursor(since=3)
        seen: list[int] = []

        result = await make_pump(feed).drain(cursor, lambda entry: seen.append(entry.sequence_number))

        assert seen == list(range(4, 14))
        assert cursor.position == 13
        assert result == DrainResult(
            start_position=3,
            final_position=13,
            entries_processed=10,
            entries_retried=0,
            pages_fetched=1,
        )
        assert result.advanced

    @pytest.mark.asyncio
    async def test_drain_follows_pages(self):
        feed = ScriptedFeed([2, 5, 9, 10, 11, 20, 21], page_size=3)
        cursor = FeedCursor()
        seen: list[int] = []

        result = await make_pump(feed).drain(cursor, lambda entry: seen.append(entry.sequence_number))

        assert seen == [2, 5, 9, 10, 11, 20, 21]
        assert cursor.position == 21
        assert result.pages_fetched == 3
        assert feed.calls == [0, 9, 20]

    @pytest.mark.asyncio
    async def test_drain_empty_feed(self):
        cursor = FeedCursor(since=7)

        result = await make_pump(ScriptedFeed([])).drain(cursor, lambda entry: None)

        assert cursor.position == 7
        assert not result.advanced

    @pytest.mark.asyncio
    async def test_non_eager_drain_reads_one_page(self):
        feed = ScriptedFeed(range(1, 11), page_size=4)
        cursor = FeedCursor()

        await make_pump(feed).drain(cursor, lambda entry: None, eager=False)

        assert cursor.position == 4
        assert feed.calls == [0]

    @pytest.mark.asyncio
    async def test_retry_skips_cursor_but_continues(self):
        feed = ScriptedFeed(range(1, 6))
        advanced: list[int] = []
        seen: list[int] = []
        cursor = FeedCursor(on_advance=advanced.append)

        def handler(entry: FeedEntry) -> EntryDirective | None:
            seen.append(entry.sequence_number)
            return EntryDirective.RETRY if entry.sequence_number == 3 else None

        result = await make_pump(feed).drain(cursor, handler)

        assert seen == [1, 2, 3, 4, 5]
        assert advanced == [1, 2, 4, 5]
        assert cursor.position == 5
        assert result.entries_processed == 4
        assert result.entries_retried == 1

    @pytest.mark.asyncio
    async def test_retry_of_last_entry_is_redelivered_next_pass(self):
        feed = ScriptedFeed(range(1, 6))
        cursor = FeedCursor()
        attempts: list[int] = []

        def handler(entry: FeedEntry) -> EntryDirective | None:
            attempts.append(entry.sequence_number)
            if entry.sequence_number == 5 and attempts.count(5) == 1:
                return EntryDirective.RETRY
            return None

        pump = make_pump(feed)
        await pump.drain(cursor, handler)
        assert cursor.position == 4

        await pump.drain(cursor, handler)
        assert cursor.position == 5
        assert attempts == [1, 2, 3, 4, 5, 5]

    @pytest.mark.asyncio
    async def test_retry_on_page_boundary_does_not_refetch_in_same_pass(self):
        feed = ScriptedFeed(range(1, 7), page_size=3)
        cursor = FeedCursor()

        def handler(entry: FeedEntry) -> EntryDirective | None:
            return EntryDirective.RETRY if entry.sequence_number == 3 else None

        result = await make_pump(feed).drain(cursor, handler)

        assert feed.calls == [0, 3]
        assert cursor.position == 6
        assert result.entries_retried == 1

    @pytest.mark.asyncio
    async def test_handler_error_propagates_and_holds_cursor(self):
        feed = ScriptedFeed(range(1, 6))
        cursor = FeedCursor()
        seen: list[int] = []

        def handler(entry: FeedEntry) -> None:
            seen.append(entry.sequence_number)
            if entry.sequence_number == 3:
                raise ValueError("cannot project entry 3")

        with pytest.raises(ValueError, match="cannot project entry 3"):
            await make_pump(feed).drain(cursor, handler)

        assert seen == [1, 2, 3]
        assert cursor.position == 2

    @pytest.mark.asyncio
    async def test_handler_error_closes_page_iterator(self):
        class TrackingCursor(FeedCursor):
            closed = False

            async def iter_pages(self, fetch, eager=True):
                try:
                    async for page in super().iter_pages(fetch, eager=eager):
                        yield page
                finally:
                    self.closed = True

        feed = ScriptedFeed(range(1, 6), page_size=2)
        cursor = TrackingCursor()

        def handler(entry: FeedEntry) -> None:
            if entry.sequence_number == 3:
                raise ValueError("cannot project entry 3")

        with pytest.raises(ValueError):
            await make_pump(feed).drain(cursor, handler)

        assert cursor.closed
        assert feed.calls == [0, 2]

    @pytest.mark.asyncio
    async def test_async_handler(self):
        feed = ScriptedFeed(range(1, 4))
        cursor = FeedCursor()
        seen: list[int] = []

        async def handler(entry: FeedEntry) -> None:
            await asyncio.sleep(0)
            seen.append(entry.sequence_number)

        await make_pump(feed).drain(cursor, handler)

        assert seen == [1, 2, 3]
        assert cursor.position == 3

    @pytest.mark.asyncio
    async def test_drain_emits_span(self):
        tracer = MockTracer()
        feed = ScriptedFeed(range(1, 4))

        await make_pump(feed, tracer).drain(FeedCursor(), lambda entry: None)

        assert tracer.span_names == ["eventclient.feed.drain"]
        _, attributes = tracer.spans[0]
        assert attributes == {"eventclient.feed.name": "order", "eventclient.feed.since": 0}


class TestRun:
    @pytest.mark.asyncio
    async def test_run_polls_until_cancelled(self):
        feed = ScriptedFeed(range(1, 4))
        cursor = FeedCursor()
        drained = asyncio.Event()

        def handler(entry: FeedEntry) -> None:
            if entry.sequence_number == 3:
                drained.set()

        task = asyncio.create_task(make_pump(feed).run(cursor, handler, poll_delay=0.01))
        await asyncio.wait_for(drained.wait(), timeout=2.0)
        await asyncio.sleep(0.05)

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert cursor.position == 3
        # Later ticks keep polling from the cursor
        assert len(feed.calls) >= 2
        assert feed.calls[-1] == 3

    @pytest.mark.asyncio
    async def test_run_survives_failed_pass(self):
        feed = ScriptedFeed(range(1, 4))
        cursor = FeedCursor()
        attempts: list[int] = []
        done = asyncio.Event()

        def handler(entry: FeedEntry) -> None:
            attempts.append(entry.sequence_number)
            if attempts == [1, 2]:
                raise RuntimeError("transient")
            if entry.sequence_number == 3:
                done.set()

        task = asyncio.create_task(make_pump(feed).run(cursor, handler, poll_delay=0.01))
        await asyncio.wait_for(done.wait(), timeout=2.0)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert attempts[:4] == [1, 2, 2, 3]
        assert cursor.position == 3

    @pytest.mark.asyncio
    async def test_run_redelivers_retried_entry_on_next_tick(self):
        feed = ScriptedFeed(range(1, 4))
        cursor = FeedCursor()
        attempts: list[int] = []
        redelivered = asyncio.Event()

        def handler(entry: FeedEntry) -> EntryDirective | None:
            attempts.append(entry.sequence_number)
            if entry.sequence_number != 3:
                return None
            if attempts.count(3) == 1:
                return EntryDirective.RETRY
            redelivered.set()
            return None

        task = asyncio.create_task(make_pump(feed).run(cursor, handler, poll_delay=0.01))
        await asyncio.wait_for(redelivered.wait(), timeout=2.0)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert attempts[:4] == [1, 2, 3, 3]
        assert feed.calls[:2] == [0, 2]
        assert cursor.position == 3

"""
Feed pump: delivering feed entries to a handler.

The pump has two modes:
- drain(): one pass that fetches pages from the cursor until the feed
  reports no more entries, delivering every entry in order
- run(): drain() on a fixed-delay timer, forever, until cancelled

Retry-skip:
    When the handler returns EntryDirective.RETRY the cursor is not moved
    for that entry, and the pump continues with the next entry of the same
    pass. The entry is not redelivered within the pass. If no later entry
    succeeds, the next pass starts before it and delivers it again; if a
    later entry succeeds, the cursor moves past it.

This module provides:
- FeedHandler: Type of the callables the pump delivers entries to
- DrainResult: Statistics of one pass
- FeedPump: The pump itself
"""

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from eventclient.feed.cursor import FeedCursor, PageFetcher
from eventclient.feed.models import FeedEntry
from eventclient.feed.outcome import Advance, EntryDirective, EntryOutcome, Fail, Retry
from eventclient.observability import (
    ATTR_ENTRIES_PROCESSED,
    ATTR_ENTRIES_RETRIED,
    ATTR_FEED_NAME,
    ATTR_FEED_POSITION,
    ATTR_FEED_SINCE,
    Tracer,
    create_tracer,
)

logger = logging.getLogger(__name__)

# Sync or async callable; None means "handled"
FeedHandler = Callable[
    [FeedEntry], EntryDirective | None | Awaitable[EntryDirective | None]
]


@dataclass(frozen=True)
class DrainResult:
    """
    Result of one drain pass.

    Attributes:
        start_position: Cursor position the pass started from
        final_position: Cursor position after the pass
        entries_processed: Entries the handler acknowledged
        entries_retried: Entries the handler asked to retry
        pages_fetched: Pages requested from the backend
    """

    start_position: int
    final_position: int
    entries_processed: int = 0
    entries_retried: int = 0
    pages_fetched: int = 0

    @property
    def advanced(self) -> bool:
        return self.final_position > self.start_position


class FeedPump:
    """
    Delivers feed entries to a handler and keeps a cursor in step.

    Example:
        >>> pump = FeedPump(fetch, feed_name="order")
        >>> cursor = FeedCursor(since=3)
        >>> result = await pump.drain(cursor, handle_entry)
        >>> cursor.position
        13
    """

    def __init__(
        self,
        fetch: PageFetcher,
        *,
        feed_name: str,
        tracer: Tracer | None = None,
        enable_tracing: bool = True,
    ) -> None:
        """
        Initialize the pump.

        Args:
            fetch: Coroutine returning the page after a sequence number
            feed_name: Name of the feed, for logs and spans
            tracer: Optional custom Tracer instance
            enable_tracing: If True, emit OpenTelemetry spans. Ignored if
                tracer is explicitly provided.
        """
        self._tracer = tracer or create_tracer(__name__, enable_tracing)
        self._fetch = fetch
        self._feed_name = feed_name

    @property
    def feed_name(self) -> str:
        return self._feed_name

    async def deliver(self, entry: FeedEntry, handler: FeedHandler) -> EntryOutcome:
        """Invoke the handler for one entry and classify what happened."""
        try:
            result = handler(entry)
            if asyncio.iscoroutine(result):
                result = await result
        except Exception as e:
            return Fail(entry.sequence_number, e)

        if result is EntryDirective.RETRY:
            return Retry(entry.sequence_number)
        return Advance(entry.sequence_number)

    async def drain(
        self,
        cursor: FeedCursor,
        handler: FeedHandler,
        *,
        eager: bool = True,
    ) -> DrainResult:
        """
        Run one pass over the feed from the cursor's position.

        Args:
            cursor: Cursor to read from and advance
            handler: Receives every entry, in sequence number order
            eager: Keep fetching pages while the backend reports more

        Returns:
            DrainResult for the pass

        Raises:
            Exception: Whatever the handler raised; the cursor stays at the
                last acknowledged entry
        """
        start_position = cursor.position
        processed = 0
        retried = 0
        pages = 0

        with self._tracer.span(
            "eventclient.feed.drain",
            {
                ATTR_FEED_NAME: self._feed_name,
                ATTR_FEED_SINCE: start_position,
            },
        ) as span:
            async with contextlib.aclosing(cursor.iter_pages(self._fetch, eager=eager)) as page_iter:
                async for page in page_iter:
                    pages += 1
                    for entry in page.entries:
                        outcome = await self.deliver(entry, handler)

                        if isinstance(outcome, Advance):
                            cursor.advance(outcome.sequence_number)
                            processed += 1
                        elif isinstance(outcome, Retry):
                            retried += 1
                            logger.warning(
                                "Retry requested for entry %d on feed %s, cursor left at %d",
                                outcome.sequence_number,
                                self._feed_name,
                                cursor.position,
                                extra={
                                    "feed": self._feed_name,
                                    "sequence_number": outcome.sequence_number,
                                    "position": cursor.position,
                                },
                            )
                        elif isinstance(outcome, Fail):
                            raise outcome.error

            if span:
                span.set_attribute(ATTR_FEED_POSITION, cursor.position)
                span.set_attribute(ATTR_ENTRIES_PROCESSED, processed)
                span.set_attribute(ATTR_ENTRIES_RETRIED, retried)

        logger.debug(
            "Drained feed %s from %d to %d (%d processed, %d retried, %d page(s))",
            self._feed_name,
            start_position,
            cursor.position,
            processed,
            retried,
            pages,
        )
        return DrainResult(
            start_position=start_position,
            final_position=cursor.position,
            entries_processed=processed,
            entries_retried=retried,
            pages_fetched=pages,
        )

    async def run(
        self,
        cursor: FeedCursor,
        handler: FeedHandler,
        *,
        poll_delay: float,
        eager: bool = True,
    ) -> None:
        """
        Drain the feed every ``poll_delay`` seconds until cancelled.

        The delay is measured from the end of one pass to the start of the
        next, so passes never overlap. A pass that fails is logged and the
        loop carries on with the next tick from the last acknowledged entry.
        """
        logger.debug(
            "Starting poll loop for feed %s",
            self._feed_name,
            extra={"feed": self._feed_name, "poll_delay": poll_delay, "since": cursor.position},
        )
        while True:
            await asyncio.sleep(poll_delay)
            try:
                await self.drain(cursor, handler, eager=eager)
            except Exception as e:
                logger.warning(
                    "Feed pass for %s failed at position %d: %s",
                    self._feed_name,
                    cursor.position,
                    e,
                    exc_info=True,
                    extra={"feed": self._feed_name, "position": cursor.position},
                )


__all__ = [
    "DrainResult",
    "FeedHandler",
    "FeedPump",
]

"""
Feed cursor.

The cursor is the last sequence number the consumer has handled. It only
moves forward and only after an entry was handled successfully. Persisting
it across restarts is the caller's job; ``on_advance`` is the hook for that.
"""

import logging
from collections.abc import AsyncIterator, Awaitable, Callable

from eventclient.feed.models import FeedPage

logger = logging.getLogger(__name__)

# Fetches the page of entries after the given sequence number
PageFetcher = Callable[[int], Awaitable[FeedPage]]


class FeedCursor:
    """
    Position of a consumer on a feed.

    Attributes:
        position: Last handled sequence number (0 = nothing handled yet)

    Example:
        >>> cursor = FeedCursor(since=3, on_advance=store.save_position)
        >>> cursor.advance(4)
        >>> cursor.position
        4
    """

    def __init__(
        self,
        since: int = 0,
        on_advance: Callable[[int], None] | None = None,
    ) -> None:
        if since < 0:
            raise ValueError(f"since must be >= 0, got {since}. Use 0 to start from the beginning.")
        self._position = since
        self._on_advance = on_advance

    @property
    def position(self) -> int:
        return self._position

    def advance(self, sequence_number: int) -> None:
        """
        Move the cursor to a handled entry.

        Raises:
            ValueError: If sequence_number is not past the current position
        """
        if sequence_number <= self._position:
            raise ValueError(
                f"Cursor can only move forward: at {self._position}, got {sequence_number}"
            )
        self._position = sequence_number
        if self._on_advance is not None:
            self._on_advance(sequence_number)

    async def iter_pages(
        self,
        fetch: PageFetcher,
        eager: bool = True,
    ) -> AsyncIterator[FeedPage]:
        """
        Fetch pages starting at the cursor's position.

        The read position moves past every entry that was yielded, whether
        or not the consumer advanced the cursor for it, so an entry that was
        not acknowledged is not fetched again in the same pass.

        Args:
            fetch: Coroutine returning the page after a sequence number
            eager: Keep fetching while pages report has_more; with False
                only one page is fetched
        """
        read_from = self._position
        while True:
            page = await fetch(read_from)
            yield page

            last = page.last_sequence_number
            if last is not None and last > read_from:
                read_from = last
            elif page.has_more:
                # A page that reports more but does not move forward would spin forever
                logger.warning(
                    "Feed page after %d reported more entries but made no progress",
                    read_from,
                )
                return

            if not (eager and page.has_more):
                return

    def __repr__(self) -> str:
        return f"FeedCursor(position={self._position})"


__all__ = [
    "FeedCursor",
    "PageFetcher",
]

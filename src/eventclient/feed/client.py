"""
Feed client.

Reads feeds from a backend, either once (execute) or continuously in the
background (subscribe). Every subscription is an asyncio task owned by the
client; close() cancels them all and waits for them to finish.
"""

import asyncio
import functools
import itertools
import logging
from typing import Any
from uuid import UUID

from eventclient.backends.interface import ALL_FEED, Backend
from eventclient.exceptions import FeedClientClosedError
from eventclient.feed.cursor import FeedCursor
from eventclient.feed.models import FeedInfo, FeedPage
from eventclient.feed.pump import FeedHandler, FeedPump
from eventclient.feed.request import FeedRequest
from eventclient.observability import Tracer, create_tracer

logger = logging.getLogger(__name__)


class FeedClient:
    """
    Client for reading feeds.

    Features:
    - Single page fetches
    - Eager drain of a feed from a cursor (execute)
    - Background polling subscriptions with retry-skip semantics (subscribe)
    - Feed listing and current sequence number lookup

    Example:
        >>> async with FeedClient(backend) as feeds:
        ...     position = await feeds.execute(FeedRequest("order"), handle_entry, since=3)
        ...     await feeds.subscribe(FeedRequest("order", poll_delay=2.0), handle_entry)
        ...     ...
    """

    def __init__(
        self,
        backend: Backend,
        *,
        shutdown_timeout: float = 5.0,
        tracer: Tracer | None = None,
        enable_tracing: bool = True,
    ) -> None:
        """
        Initialize the feed client.

        Args:
            backend: Backend serving the feeds
            shutdown_timeout: Max seconds close() waits for cancelled
                subscriptions to finish
            tracer: Optional custom Tracer instance
            enable_tracing: If True, emit OpenTelemetry spans. Ignored if
                tracer is explicitly provided.
        """
        if shutdown_timeout <= 0:
            raise ValueError(f"shutdown_timeout must be positive, got {shutdown_timeout}.")

        self._tracer = tracer or create_tracer(__name__, enable_tracing)
        self._backend = backend
        self._shutdown_timeout = shutdown_timeout
        self._tasks: set[asyncio.Task[None]] = set()
        self._task_ids = itertools.count(1)
        self._closed = False

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def active_subscriptions(self) -> int:
        return sum(1 for task in self._tasks if not task.done())

    async def fetch_page(self, request: FeedRequest, since: int = 0) -> FeedPage:
        """Fetch the single page of entries after ``since``."""
        return await self._backend.fetch_feed_page(
            request.feed_name,
            since,
            limit=request.limit,
            partition_count=request.partition_count,
            partition_number=request.partition_number,
            tenant_id=request.tenant_id,
        )

    async def execute(
        self,
        request: FeedRequest,
        handler: FeedHandler,
        since: int | FeedCursor = 0,
    ) -> int:
        """
        Drain the feed once, delivering every entry after ``since``.

        Pages are fetched until the backend reports no more entries (or
        after one page if the request disables eager fetching).

        Args:
            request: Feed to read
            handler: Receives every entry in sequence number order
            since: Starting sequence number, or a cursor to read from and
                advance

        Returns:
            Cursor position after the pass

        Raises:
            Exception: Whatever the handler raised
        """
        cursor = self._cursor(since)
        result = await self._pump(request).drain(cursor, handler, eager=request.eager_fetching)
        return result.final_position

    async def subscribe(
        self,
        request: FeedRequest,
        handler: FeedHandler,
        since: int | FeedCursor = 0,
    ) -> FeedCursor:
        """
        Start polling the feed in the background.

        Every ``request.poll_delay`` seconds the subscription drains the
        feed from its cursor. A handler error ends only the current pass.
        The subscription runs until the client is closed.

        Returns:
            The subscription's cursor, for observing or persisting its position

        Raises:
            FeedClientClosedError: If the client has been closed
        """
        if self._closed:
            raise FeedClientClosedError("Cannot subscribe: feed client is closed")

        cursor = self._cursor(since)
        pump = self._pump(request)
        task = asyncio.create_task(
            pump.run(
                cursor,
                handler,
                poll_delay=request.poll_delay,
                eager=request.eager_fetching,
            ),
            name=f"feed-subscription-{request.feed_name}-{next(self._task_ids)}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)

        logger.info(
            "Subscribed to feed %s from %d",
            request.feed_name,
            cursor.position,
            extra={
                "feed": request.feed_name,
                "since": cursor.position,
                "poll_delay": request.poll_delay,
            },
        )
        return cursor

    async def list_feeds(self, tenant_id: UUID | None = None) -> list[FeedInfo]:
        return await self._backend.list_feeds(tenant_id)

    async def current_sequence_number(
        self,
        feed_name: str = ALL_FEED,
        tenant_id: UUID | None = None,
    ) -> int:
        """
        Sequence number of the most recently committed batch on a feed.

        Note that the "_all" feed has its own global sequence.
        """
        return await self._backend.current_sequence_number(feed_name, tenant_id)

    async def close(self) -> None:
        """
        Stop every subscription.

        Cancels all subscription tasks and waits up to ``shutdown_timeout``
        for them to finish. Once this returns no subscription handler runs
        again. Closing twice is harmless.
        """
        self._closed = True
        tasks = [task for task in self._tasks if not task.done()]
        for task in tasks:
            task.cancel()

        if tasks:
            _, pending = await asyncio.wait(tasks, timeout=self._shutdown_timeout)
            if pending:
                logger.warning(
                    "%d feed subscription(s) did not stop within %.1fs",
                    len(pending),
                    self._shutdown_timeout,
                    extra={"remaining_tasks": len(pending), "timeout": self._shutdown_timeout},
                )

        self._tasks.clear()
        logger.info("Feed client closed, %d subscription(s) stopped", len(tasks))

    async def __aenter__(self) -> "FeedClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    def _pump(self, request: FeedRequest) -> FeedPump:
        return FeedPump(
            functools.partial(self.fetch_page, request),
            feed_name=request.feed_name,
            tracer=self._tracer,
        )

    @staticmethod
    def _cursor(since: int | FeedCursor) -> FeedCursor:
        return since if isinstance(since, FeedCursor) else FeedCursor(since)

    def _on_task_done(self, task: "asyncio.Task[None]") -> None:
        self._tasks.discard(task)
        if not task.cancelled():
            exc = task.exception()
            if exc:
                logger.error(
                    "Feed subscription %s stopped unexpectedly: %s",
                    task.get_name(),
                    exc,
                    exc_info=exc,
                )

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"FeedClient({state}, subscriptions={self.active_subscriptions})"


__all__ = ["FeedClient"]

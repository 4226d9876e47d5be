"""
In-memory backend implementation.

Useful for testing and development. Not suitable for production as all
events are lost when the process terminates.
"""

import asyncio
import logging
import time
from collections import defaultdict
from dataclasses import dataclass
from uuid import UUID, uuid4

from eventclient.backends.interface import ALL_FEED, Backend
from eventclient.delete import DeleteScope
from eventclient.events import Event, EventBatch, LoadedAggregate
from eventclient.exceptions import AggregateNotFoundError, BackendError, PreconditionFailedError
from eventclient.feed.models import FeedEntry, FeedInfo, FeedPage
from eventclient.observability import (
    ATTR_AGGREGATE_ID,
    ATTR_AGGREGATE_TYPE,
    ATTR_EVENT_COUNT,
    ATTR_EXPECTED_VERSION,
    ATTR_FEED_NAME,
    ATTR_FEED_SINCE,
    Tracer,
    create_tracer,
)

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 1000

# (tenant_id, aggregate_type, aggregate_id)
StreamKey = tuple[UUID | None, str, UUID]


@dataclass(frozen=True)
class _CommittedBatch:
    sequence_number: int
    tenant_id: UUID | None
    aggregate_type: str
    aggregate_id: UUID
    timestamp: int
    events: tuple[Event, ...]

    def to_entry(self) -> FeedEntry:
        return FeedEntry(
            sequence_number=self.sequence_number,
            aggregate_id=self.aggregate_id,
            timestamp=self.timestamp,
            events=tuple(e.model_copy(deep=True) for e in self.events),
        )


class InMemoryBackend(Backend):
    """
    In-memory implementation of the backend.

    Behaves like the real service where the client can observe it:
    - Conditional appends are checked against the stored version and
      rejected with status 409
    - Every committed batch gets the next number on one global sequence;
      per-type feeds show the subset for their type, so their sequence
      numbers have gaps
    - Delete tokens are single use

    Thread-safety:
        Uses an asyncio lock so compare-and-append is atomic with respect
        to other coroutines on the same event loop.

    Example:
        >>> backend = InMemoryBackend()
        >>> orders = AggregateClient(backend, "order", fold, OrderState)
        >>> await orders.save(order_id, [Event.from_payload(placed)], expected_version=0)
    """

    def __init__(
        self,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        tracer: Tracer | None = None,
        enable_tracing: bool = True,
    ) -> None:
        """
        Initialize an empty in-memory backend.

        Args:
            page_size: Feed page size used when a request sets no limit
            tracer: Optional custom Tracer instance
            enable_tracing: If True, emit OpenTelemetry spans. Ignored if
                tracer is explicitly provided.
        """
        if page_size < 1:
            raise ValueError(f"page_size must be positive, got {page_size}.")

        self._tracer = tracer or create_tracer(__name__, enable_tracing)
        self._page_size = page_size

        self._streams: dict[StreamKey, list[Event]] = defaultdict(list)
        self._event_ids: set[UUID] = set()
        self._batches: list[_CommittedBatch] = []
        self._sequence_number = 0
        self._delete_tokens: dict[str, DeleteScope] = {}
        self._lock = asyncio.Lock()

    async def load_aggregate(
        self,
        aggregate_type: str,
        aggregate_id: UUID,
        tenant_id: UUID | None = None,
    ) -> LoadedAggregate:
        events = self._streams.get((tenant_id, aggregate_type, aggregate_id))
        if not events:
            raise AggregateNotFoundError(aggregate_type, aggregate_id)
        return LoadedAggregate(
            aggregate_id=aggregate_id,
            aggregate_type=aggregate_type,
            version=len(events),
            events=tuple(e.model_copy(deep=True) for e in events),
        )

    async def append_events(
        self,
        aggregate_type: str,
        aggregate_id: UUID,
        batch: EventBatch,
        tenant_id: UUID | None = None,
    ) -> None:
        """
        Append a batch, checking the expected version if it has one.

        Events whose ID was already stored are skipped (idempotent retry
        of the same batch).

        Raises:
            BackendError: status_code 409 on a version mismatch
        """
        with self._tracer.span(
            "eventclient.in_memory_backend.append_events",
            {
                ATTR_AGGREGATE_ID: str(aggregate_id),
                ATTR_AGGREGATE_TYPE: aggregate_type,
                ATTR_EVENT_COUNT: len(batch.events),
                ATTR_EXPECTED_VERSION: -1 if batch.expected_version is None else batch.expected_version,
            },
        ):
            async with self._lock:
                key = (tenant_id, aggregate_type, aggregate_id)
                current_version = len(self._streams.get(key, ()))

                if batch.expected_version is not None and batch.expected_version != current_version:
                    raise BackendError(
                        f"Expected version {batch.expected_version} for "
                        f"{aggregate_type}/{aggregate_id}, but current version is {current_version}",
                        status_code=409,
                    )

                new_events = tuple(
                    e.model_copy(deep=True) for e in batch.events if e.event_id not in self._event_ids
                )
                if not new_events:
                    return

                self._sequence_number += 1
                self._streams[key].extend(new_events)
                self._event_ids.update(e.event_id for e in new_events)
                self._batches.append(
                    _CommittedBatch(
                        sequence_number=self._sequence_number,
                        tenant_id=tenant_id,
                        aggregate_type=aggregate_type,
                        aggregate_id=aggregate_id,
                        timestamp=int(time.time() * 1000),
                        events=new_events,
                    )
                )

    async def aggregate_exists(
        self,
        aggregate_type: str,
        aggregate_id: UUID,
        tenant_id: UUID | None = None,
    ) -> bool:
        return bool(self._streams.get((tenant_id, aggregate_type, aggregate_id)))

    async def request_delete(self, scope: DeleteScope) -> str:
        token = str(uuid4())
        self._delete_tokens[token] = scope
        return token

    async def confirm_delete(self, scope: DeleteScope, token: str) -> None:
        async with self._lock:
            issued_for = self._delete_tokens.get(token)
            if issued_for is None or issued_for != scope:
                raise PreconditionFailedError(f"Invalid or already used delete token for {scope}")
            del self._delete_tokens[token]

            doomed = [key for key in self._streams if self._in_scope(key, scope)]
            for key in doomed:
                self._event_ids.difference_update(e.event_id for e in self._streams.pop(key))
            self._batches = [
                b
                for b in self._batches
                if not self._in_scope((b.tenant_id, b.aggregate_type, b.aggregate_id), scope)
            ]

        logger.debug("Deleted %d aggregate(s) for %s", len(doomed), scope)

    async def fetch_feed_page(
        self,
        feed_name: str,
        since: int = 0,
        *,
        limit: int | None = None,
        partition_count: int | None = None,
        partition_number: int | None = None,
        tenant_id: UUID | None = None,
    ) -> FeedPage:
        with self._tracer.span(
            "eventclient.in_memory_backend.fetch_feed_page",
            {ATTR_FEED_NAME: feed_name, ATTR_FEED_SINCE: since},
        ):
            page_size = limit or self._page_size
            matching = [
                b
                for b in self._feed(feed_name, tenant_id)
                if b.sequence_number > since
                and (
                    partition_count is None
                    or partition_number is None
                    or b.aggregate_id.int % partition_count == partition_number
                )
            ]
            return FeedPage(
                entries=tuple(b.to_entry() for b in matching[:page_size]),
                has_more=len(matching) > page_size,
                current_sequence_number=self._last_sequence_number(feed_name, tenant_id),
            )

    async def list_feeds(self, tenant_id: UUID | None = None) -> list[FeedInfo]:
        aggregates: dict[str, set[UUID]] = defaultdict(set)
        batch_counts: dict[str, int] = defaultdict(int)
        event_counts: dict[str, int] = defaultdict(int)
        for b in self._batches:
            if b.tenant_id != tenant_id:
                continue
            aggregates[b.aggregate_type].add(b.aggregate_id)
            batch_counts[b.aggregate_type] += 1
            event_counts[b.aggregate_type] += len(b.events)

        return [
            FeedInfo(
                aggregate_type=aggregate_type,
                aggregate_count=len(aggregates[aggregate_type]),
                batch_count=batch_counts[aggregate_type],
                event_count=event_counts[aggregate_type],
            )
            for aggregate_type in sorted(aggregates)
        ]

    async def current_sequence_number(
        self,
        feed_name: str = ALL_FEED,
        tenant_id: UUID | None = None,
    ) -> int:
        return self._last_sequence_number(feed_name, tenant_id)

    def _feed(self, feed_name: str, tenant_id: UUID | None) -> list[_CommittedBatch]:
        return [
            b
            for b in self._batches
            if b.tenant_id == tenant_id and (feed_name == ALL_FEED or b.aggregate_type == feed_name)
        ]

    def _last_sequence_number(self, feed_name: str, tenant_id: UUID | None) -> int:
        feed = self._feed(feed_name, tenant_id)
        return feed[-1].sequence_number if feed else 0

    @staticmethod
    def _in_scope(key: StreamKey, scope: DeleteScope) -> bool:
        tenant_id, aggregate_type, aggregate_id = key
        return (
            tenant_id == scope.tenant_id
            and aggregate_type == scope.aggregate_type
            and (scope.aggregate_id is None or aggregate_id == scope.aggregate_id)
        )

    async def clear(self) -> None:
        """Drop all stored data. Intended for tests."""
        async with self._lock:
            self._streams.clear()
            self._event_ids.clear()
            self._batches.clear()
            self._sequence_number = 0
            self._delete_tokens.clear()

    def __repr__(self) -> str:
        return f"InMemoryBackend(aggregates={len(self._streams)}, batches={len(self._batches)})"


__all__ = ["InMemoryBackend"]

"""
Test backends and feed helpers.

Provides:
- RecordingBackend: InMemoryBackend that records every write call
- InterleavingBackend: RecordingBackend where another writer commits right
  after each load, so the loaded version is always stale
- ScriptedFeed: Page fetcher over a fixed list of sequence numbers
- make_entry: FeedEntry factory
"""

from collections.abc import Iterable
from uuid import UUID, uuid4

from eventclient.backends.in_memory import InMemoryBackend
from eventclient.delete import DeleteScope
from eventclient.events import Event, EventBatch, LoadedAggregate
from eventclient.feed.models import FeedEntry, FeedPage


class RecordingBackend(InMemoryBackend):
    """InMemoryBackend that records append and delete calls."""

    def __init__(self) -> None:
        super().__init__(enable_tracing=False)
        self.appends: list[tuple[str, UUID, EventBatch, UUID | None]] = []
        self.delete_confirmations: list[tuple[DeleteScope, str]] = []

    async def append_events(
        self,
        aggregate_type: str,
        aggregate_id: UUID,
        batch: EventBatch,
        tenant_id: UUID | None = None,
    ) -> None:
        self.appends.append((aggregate_type, aggregate_id, batch, tenant_id))
        await super().append_events(aggregate_type, aggregate_id, batch, tenant_id)

    async def confirm_delete(self, scope: DeleteScope, token: str) -> None:
        self.delete_confirmations.append((scope, token))
        await super().confirm_delete(scope, token)

    @property
    def append_count(self) -> int:
        return len(self.appends)


class InterleavingBackend(RecordingBackend):
    """Commits ``concurrent_event`` behind the reader's back after every load."""

    def __init__(self, concurrent_event: Event) -> None:
        super().__init__()
        self.concurrent_event = concurrent_event

    async def load_aggregate(
        self,
        aggregate_type: str,
        aggregate_id: UUID,
        tenant_id: UUID | None = None,
    ) -> LoadedAggregate:
        loaded = await super().load_aggregate(aggregate_type, aggregate_id, tenant_id)
        # Written through the base class so the test only sees the client's appends
        await InMemoryBackend.append_events(
            self,
            aggregate_type,
            aggregate_id,
            EventBatch(events=(self.concurrent_event.model_copy(update={"event_id": uuid4()}),)),
            tenant_id,
        )
        return loaded


def make_entry(sequence_number: int, aggregate_id: UUID | None = None) -> FeedEntry:
    return FeedEntry(
        sequence_number=sequence_number,
        aggregate_id=aggregate_id or uuid4(),
        timestamp=1_700_000_000_000 + sequence_number,
        events=(Event.of("OrderPlaced", {"seq": sequence_number}),),
    )


class ScriptedFeed:
    """
    Page fetcher over a fixed set of entries.

    Records the ``since`` of every fetch in ``calls``.
    """

    def __init__(self, sequence_numbers: Iterable[int], page_size: int = 100) -> None:
        self.entries = [make_entry(n) for n in sorted(sequence_numbers)]
        self.page_size = page_size
        self.calls: list[int] = []

    async def __call__(self, since: int) -> FeedPage:
        self.calls.append(since)
        after = [e for e in self.entries if e.sequence_number > since]
        return FeedPage(
            entries=tuple(after[: self.page_size]),
            has_more=len(after) > self.page_size,
            current_sequence_number=self.entries[-1].sequence_number if self.entries else 0,
        )

"""
Backend interface.

The backend is the remote side of the client: it stores aggregate event
streams, enforces the optimistic version check on append, hands out delete
tokens and serves the feeds. The client core only ever talks to it through
this abstract class.

Implementations:
- InMemoryBackend: process-local, for tests and development
- HttpBackend: REST API over httpx
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING
from uuid import UUID

if TYPE_CHECKING:
    from eventclient.delete import DeleteScope
    from eventclient.events import EventBatch, LoadedAggregate
    from eventclient.feed.models import FeedInfo, FeedPage

ALL_FEED = "_all"
"""Name of the feed carrying every aggregate type on one global sequence."""


class Backend(ABC):
    """
    Abstract base class for backends.

    Error contract:
    - load_aggregate raises AggregateNotFoundError for an aggregate with no
      history
    - append_events raises BackendError with status_code 409 when the batch
      is conditional and the aggregate moved on; the client classifies it
    - confirm_delete raises PreconditionFailedError for a reused or unknown
      token
    - everything else surfaces as BackendError
    """

    @abstractmethod
    async def load_aggregate(
        self,
        aggregate_type: str,
        aggregate_id: UUID,
        tenant_id: UUID | None = None,
    ) -> LoadedAggregate:
        """
        Load the full event history of an aggregate.

        Raises:
            AggregateNotFoundError: If the aggregate has no events
        """
        pass

    @abstractmethod
    async def append_events(
        self,
        aggregate_type: str,
        aggregate_id: UUID,
        batch: EventBatch,
        tenant_id: UUID | None = None,
    ) -> None:
        """
        Append a batch of events atomically.

        Raises:
            BackendError: status_code 409 if batch.expected_version no longer
                matches the aggregate's version
        """
        pass

    @abstractmethod
    async def aggregate_exists(
        self,
        aggregate_type: str,
        aggregate_id: UUID,
        tenant_id: UUID | None = None,
    ) -> bool:
        pass

    @abstractmethod
    async def request_delete(self, scope: DeleteScope) -> str:
        """Ask for a delete token covering the given scope."""
        pass

    @abstractmethod
    async def confirm_delete(self, scope: DeleteScope, token: str) -> None:
        """
        Perform a delete previously requested with request_delete.

        Raises:
            PreconditionFailedError: If the token was already used or is unknown
        """
        pass

    @abstractmethod
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
        """
        Fetch the entries after ``since`` on a feed.

        Entries come back in ascending sequence number order.
        """
        pass

    @abstractmethod
    async def list_feeds(self, tenant_id: UUID | None = None) -> list[FeedInfo]:
        pass

    @abstractmethod
    async def current_sequence_number(
        self,
        feed_name: str = ALL_FEED,
        tenant_id: UUID | None = None,
    ) -> int:
        """Sequence number of the most recently committed batch on the feed."""
        pass

    async def close(self) -> None:
        """Release any resources held by the backend."""
        return None


__all__ = [
    "ALL_FEED",
    "Backend",
]

"""
Feed request configuration.
"""

from dataclasses import dataclass
from uuid import UUID

from eventclient.backends.interface import ALL_FEED


@dataclass(frozen=True)
class FeedRequest:
    """
    Which feed to read and how.

    Attributes:
        feed_name: Feed to read; an aggregate type, or "_all" for every type
        limit: Maximum entries per page (None = backend default)
        partition_count: Number of partitions the feed is split into
        partition_number: Partition to read (0-based, < partition_count)
        tenant_id: Tenant to read the feed for
        eager_fetching: Keep fetching pages while the backend reports more
        poll_delay: Seconds between subscription passes (fixed delay)

    Example:
        >>> request = FeedRequest("order", limit=100, poll_delay=2.0)
    """

    feed_name: str = ALL_FEED
    limit: int | None = None
    partition_count: int | None = None
    partition_number: int | None = None
    tenant_id: UUID | None = None
    eager_fetching: bool = True
    poll_delay: float = 1.0

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if not self.feed_name or not self.feed_name.strip():
            raise ValueError("No feed specified: feed_name must not be blank.")

        if self.limit is not None and self.limit < 1:
            raise ValueError(f"limit must be positive, got {self.limit}.")

        if (self.partition_count is None) != (self.partition_number is None):
            raise ValueError("partition_count and partition_number must be given together.")

        if self.partition_count is not None and self.partition_number is not None:
            if self.partition_count < 1:
                raise ValueError(f"partition_count must be positive, got {self.partition_count}.")
            if not 0 <= self.partition_number < self.partition_count:
                raise ValueError(
                    f"partition_number must be in [0, {self.partition_count}), "
                    f"got {self.partition_number}."
                )

        if self.poll_delay <= 0:
            raise ValueError(
                f"poll_delay must be positive, got {self.poll_delay}. "
                "Use a value like 1.0 (default) seconds."
            )


__all__ = ["FeedRequest"]

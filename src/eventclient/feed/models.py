"""
Feed data structures.

This module provides:
- FeedEntry: One atomically committed event batch, as seen on a feed
- FeedPage: One page of feed entries plus pagination state
- FeedInfo: Summary of a feed as returned by the feed listing
"""

from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from eventclient.events import Event


class FeedEntry(BaseModel):
    """
    A committed event batch on a feed.

    Sequence numbers are feed-local and strictly increasing, but not
    necessarily contiguous (a per-type feed skips the numbers taken by
    other aggregate types on the global sequence).

    Attributes:
        sequence_number: Position of this entry on the feed
        aggregate_id: Aggregate the batch was written to
        timestamp: Commit time in epoch milliseconds, if the backend sends it
        events: Events of the batch, in commit order
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    sequence_number: int = Field(..., alias="sequenceNumber", ge=1)
    aggregate_id: UUID | None = Field(default=None, alias="aggregateId")
    timestamp: int | None = None
    events: tuple[Event, ...] = ()


class FeedPage(BaseModel):
    """
    One page of a feed.

    ``has_more`` means more entries exist past the end of this page; it is
    a pagination flag, not an end-of-stream marker.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    entries: tuple[FeedEntry, ...] = ()
    has_more: bool = Field(default=False, alias="hasMore")
    current_sequence_number: int | None = Field(default=None, alias="currentSequenceNumber")

    @property
    def events(self) -> list[Event]:
        """All events on the page, flattened in feed order."""
        return [event for entry in self.entries for event in entry.events]

    @property
    def last_sequence_number(self) -> int | None:
        return self.entries[-1].sequence_number if self.entries else None


class FeedInfo(BaseModel):
    """Summary statistics for one feed."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    aggregate_type: str = Field(..., alias="aggregateType")
    aggregate_count: int = Field(default=0, alias="aggregateCount")
    batch_count: int = Field(default=0, alias="batchCount")
    event_count: int = Field(default=0, alias="eventCount")


__all__ = [
    "FeedEntry",
    "FeedInfo",
    "FeedPage",
]

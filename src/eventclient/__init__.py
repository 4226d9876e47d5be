"""
eventclient - Async client for event-sourced backends.

This library provides:
- Aggregate updates: load, fold, decide, conditional append
- Event folds with typed pydantic payloads
- Optimistic concurrency with explicit conflict errors
- Two-phase deletes by aggregate or aggregate type
- Feed consumption: paginated drains and polling subscriptions
- In-memory and HTTP backends
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("eventclient-py")
except PackageNotFoundError:
    # Package not installed (running from source without install)
    __version__ = "0.0.0.dev0"

from eventclient.aggregates import AggregateClient, AggregateState, BusinessFunc, UpdateResult
from eventclient.backends import ALL_FEED, Backend, HttpBackend, InMemoryBackend
from eventclient.concurrency import classify_append_error, concurrency_guard
from eventclient.config import ClientConfig
from eventclient.delete import DeleteConfirmed, DeleteRequested, DeleteScope
from eventclient.events import Event, EventBatch, LoadedAggregate
from eventclient.exceptions import (
    AggregateNotFoundError,
    BackendError,
    ConcurrencyConflictError,
    DuplicateHandlerError,
    EventClientError,
    FeedClientClosedError,
    PreconditionFailedError,
    UnknownEventTypeError,
)
from eventclient.feed import (
    DrainResult,
    EntryDirective,
    FeedClient,
    FeedCursor,
    FeedEntry,
    FeedHandler,
    FeedInfo,
    FeedPage,
    FeedPump,
    FeedRequest,
)
from eventclient.fold import EventFold, FoldHandler, on

__all__ = [
    # Version
    "__version__",
    # Events
    "Event",
    "EventBatch",
    "LoadedAggregate",
    # Fold
    "EventFold",
    "FoldHandler",
    "on",
    # Aggregates
    "AggregateClient",
    "AggregateState",
    "BusinessFunc",
    "UpdateResult",
    # Concurrency
    "classify_append_error",
    "concurrency_guard",
    # Delete
    "DeleteScope",
    "DeleteRequested",
    "DeleteConfirmed",
    # Feeds
    "FeedClient",
    "FeedRequest",
    "FeedCursor",
    "FeedPump",
    "FeedHandler",
    "DrainResult",
    "EntryDirective",
    "FeedEntry",
    "FeedPage",
    "FeedInfo",
    # Backends
    "ALL_FEED",
    "Backend",
    "InMemoryBackend",
    "HttpBackend",
    # Config
    "ClientConfig",
    # Exceptions
    "EventClientError",
    "AggregateNotFoundError",
    "ConcurrencyConflictError",
    "UnknownEventTypeError",
    "BackendError",
    "PreconditionFailedError",
    "DuplicateHandlerError",
    "FeedClientClosedError",
]

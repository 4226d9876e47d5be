"""
Standard span attributes for eventclient.

Attribute constants shared by all components so spans are named and
labelled consistently.

Example:
    >>> from eventclient.observability.attributes import ATTR_AGGREGATE_ID
    >>>
    >>> with tracer.span(
    ...     "eventclient.aggregate.update",
    ...     {ATTR_AGGREGATE_ID: str(aggregate_id)},
    ... ):
    ...     pass
"""

# =============================================================================
# Aggregate Attributes
# =============================================================================

ATTR_AGGREGATE_ID = "eventclient.aggregate.id"
"""Unique identifier for the aggregate instance (UUID string)."""

ATTR_AGGREGATE_TYPE = "eventclient.aggregate.type"
"""Type name of the aggregate (e.g., 'order')."""

ATTR_TENANT_ID = "eventclient.tenant.id"
"""Tenant the operation is scoped to (UUID string)."""

# =============================================================================
# Event Attributes
# =============================================================================

ATTR_EVENT_COUNT = "eventclient.event.count"
"""Number of events in an operation (integer)."""

# =============================================================================
# Version Attributes
# =============================================================================

ATTR_VERSION = "eventclient.version"
"""Version of the aggregate when it was loaded (integer)."""

ATTR_EXPECTED_VERSION = "eventclient.expected_version"
"""Expected version for optimistic concurrency (integer)."""

# =============================================================================
# Feed Attributes
# =============================================================================

ATTR_FEED_NAME = "eventclient.feed.name"
"""Name of the feed being consumed (e.g., '_all', 'order')."""

ATTR_FEED_SINCE = "eventclient.feed.since"
"""Cursor position a drain pass started from (integer)."""

ATTR_FEED_POSITION = "eventclient.feed.position"
"""Cursor position after a drain pass (integer)."""

ATTR_ENTRIES_PROCESSED = "eventclient.feed.entries_processed"
"""Number of feed entries acknowledged during a pass (integer)."""

ATTR_ENTRIES_RETRIED = "eventclient.feed.entries_retried"
"""Number of feed entries that requested a retry during a pass (integer)."""

# =============================================================================
# HTTP Attributes (OTEL semantic)
# =============================================================================

ATTR_HTTP_METHOD = "http.request.method"
"""HTTP request method."""

ATTR_HTTP_STATUS_CODE = "http.response.status_code"
"""HTTP response status code."""


__all__ = [
    "ATTR_AGGREGATE_ID",
    "ATTR_AGGREGATE_TYPE",
    "ATTR_TENANT_ID",
    "ATTR_EVENT_COUNT",
    "ATTR_VERSION",
    "ATTR_EXPECTED_VERSION",
    "ATTR_FEED_NAME",
    "ATTR_FEED_SINCE",
    "ATTR_FEED_POSITION",
    "ATTR_ENTRIES_PROCESSED",
    "ATTR_ENTRIES_RETRIED",
    "ATTR_HTTP_METHOD",
    "ATTR_HTTP_STATUS_CODE",
]

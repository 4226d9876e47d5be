"""
Observability utilities for eventclient.

Tracing through OpenTelemetry and standard attribute definitions for
consistent spans across all eventclient components.

Example:
    >>> from eventclient.observability import create_tracer
    >>>
    >>> class MyComponent:
    ...     def __init__(self, enable_tracing: bool = True):
    ...         self._tracer = create_tracer(__name__, enable_tracing)
"""

from eventclient.observability.attributes import (
    ATTR_AGGREGATE_ID,
    ATTR_AGGREGATE_TYPE,
    ATTR_ENTRIES_PROCESSED,
    ATTR_ENTRIES_RETRIED,
    ATTR_EVENT_COUNT,
    ATTR_EXPECTED_VERSION,
    ATTR_FEED_NAME,
    ATTR_FEED_POSITION,
    ATTR_FEED_SINCE,
    ATTR_HTTP_METHOD,
    ATTR_HTTP_STATUS_CODE,
    ATTR_TENANT_ID,
    ATTR_VERSION,
)
from eventclient.observability.tracer import (
    MockTracer,
    NullTracer,
    OpenTelemetryTracer,
    Tracer,
    create_tracer,
)

__all__ = [
    # Tracer
    "Tracer",
    "NullTracer",
    "OpenTelemetryTracer",
    "MockTracer",
    "create_tracer",
    # Attributes
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

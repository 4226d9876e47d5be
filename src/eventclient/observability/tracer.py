"""
Span creation for the client's backends, aggregate client and feed pump.

Every traced component holds a ``Tracer`` and opens spans through it rather
than importing OpenTelemetry itself. Passing ``enable_tracing=False`` gives
the component a tracer that opens nothing, and tests hand in a MockTracer
to assert on span names and attributes.

Example:
    >>> from eventclient.observability import ATTR_FEED_NAME, create_tracer
    >>>
    >>> class FeedPoller:
    ...     def __init__(self, tracer: Tracer | None = None, enable_tracing: bool = True):
    ...         self._tracer = tracer or create_tracer(__name__, enable_tracing)
    ...
    ...     async def poll(self, feed_name: str) -> None:
    ...         with self._tracer.span("feed_poller.poll", {ATTR_FEED_NAME: feed_name}):
    ...             await self._fetch(feed_name)
"""

from __future__ import annotations

import contextlib
from collections.abc import Generator
from contextlib import AbstractContextManager
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from opentelemetry import trace

if TYPE_CHECKING:
    from opentelemetry.trace import Span


@runtime_checkable
class Tracer(Protocol):
    """
    What eventclient components need from a tracer.

    NullTracer, OpenTelemetryTracer and MockTracer are bundled; anything
    with the same two members can be passed instead.
    """

    def span(
        self,
        name: str,
        attributes: dict[str, Any] | None = None,
    ) -> AbstractContextManager[Span | None]:
        """
        Open a span around a block of client work.

        Args:
            name: Dotted span name, e.g. "eventclient.aggregate.update"
            attributes: ATTR_* keys mapped to values, if any

        Returns:
            Context manager yielding the live span, or None when nothing is
            being recorded
        """
        ...

    @property
    def enabled(self) -> bool:
        """Whether span() produces spans worth setting attributes on."""
        ...


class NullTracer:
    """Tracer used when a component is built with ``enable_tracing=False``."""

    @contextlib.contextmanager
    def span(
        self,
        name: str,
        attributes: dict[str, Any] | None = None,
    ) -> Generator[None, None, None]:
        yield None

    @property
    def enabled(self) -> bool:
        return False


class OpenTelemetryTracer:
    """
    Opens spans on the global OpenTelemetry tracer provider.

    Until the application installs a TracerProvider these spans are
    non-recording, so the client can leave tracing on by default.

    Args:
        tracer_name: Instrumentation scope name, usually the module's __name__
    """

    def __init__(self, tracer_name: str) -> None:
        self._tracer = trace.get_tracer(tracer_name)

    def span(
        self,
        name: str,
        attributes: dict[str, Any] | None = None,
    ) -> AbstractContextManager[Span | None]:
        return self._tracer.start_as_current_span(
            name,
            attributes=attributes or {},
        )

    @property
    def enabled(self) -> bool:
        return True


class MockTracer:
    """
    Keeps every (name, attributes) pair it is asked to open.

    Example:
        >>> tracer = MockTracer()
        >>> backend = InMemoryBackend(tracer=tracer)
        >>> await backend.fetch_feed_page("order")
        >>> tracer.span_names
        ['eventclient.in_memory_backend.fetch_feed_page']
    """

    def __init__(self) -> None:
        self.spans: list[tuple[str, dict[str, Any] | None]] = []

    @contextlib.contextmanager
    def span(
        self,
        name: str,
        attributes: dict[str, Any] | None = None,
    ) -> Generator[None, None, None]:
        self.spans.append((name, attributes))
        yield None

    @property
    def enabled(self) -> bool:
        return True

    @property
    def span_names(self) -> list[str]:
        """Names of the recorded spans, in the order they were opened."""
        return [name for name, _ in self.spans]

    def clear(self) -> None:
        self.spans.clear()


def create_tracer(
    name: str,
    enable_tracing: bool = True,
) -> Tracer:
    """
    Pick the tracer for a component that was not handed one explicitly.

    Args:
        name: Instrumentation scope name, usually the caller's __name__
        enable_tracing: False yields a NullTracer

    Returns:
        OpenTelemetryTracer or NullTracer
    """
    if enable_tracing:
        return OpenTelemetryTracer(name)
    return NullTracer()


__all__ = [
    "Tracer",
    "NullTracer",
    "OpenTelemetryTracer",
    "MockTracer",
    "create_tracer",
]

"""
Shared pytest fixtures for the eventclient library tests.

This module provides:
- Sample data fixtures (aggregate_id, tenant_id)
- Backend fixtures (backend, recording_backend)
- Client fixtures (orders, feed_client)
- Tracing fixtures (mock_tracer)
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from uuid import UUID, uuid4

import pytest
import pytest_asyncio

from eventclient.aggregates import AggregateClient
from eventclient.backends.in_memory import InMemoryBackend
from eventclient.feed.client import FeedClient
from eventclient.observability import MockTracer
from tests.fixtures import OrderState, RecordingBackend, order_fold

# =============================================================================
# Sample Data Fixtures
# =============================================================================


@pytest.fixture
def aggregate_id() -> UUID:
    """Provide a random aggregate ID."""
    return uuid4()


@pytest.fixture
def tenant_id() -> UUID:
    """Provide a random tenant ID for multi-tenant tests."""
    return uuid4()


# =============================================================================
# Backend Fixtures
# =============================================================================


@pytest.fixture
def backend() -> InMemoryBackend:
    """Provide a fresh in-memory backend with tracing disabled."""
    return InMemoryBackend(enable_tracing=False)


@pytest.fixture
def recording_backend() -> RecordingBackend:
    """Provide an in-memory backend that records write calls."""
    return RecordingBackend()


@pytest.fixture
def mock_tracer() -> MockTracer:
    return MockTracer()


# =============================================================================
# Client Fixtures
# =============================================================================


@pytest.fixture
def orders(recording_backend: RecordingBackend) -> AggregateClient[OrderState]:
    """
    Provide an AggregateClient for the "order" type.

    Backed by recording_backend, so tests can assert on the appends made.
    """
    return AggregateClient(
        recording_backend,
        "order",
        order_fold(),
        OrderState,
        enable_tracing=False,
    )


@pytest_asyncio.fixture
async def feed_client(backend: InMemoryBackend) -> AsyncGenerator[FeedClient, None]:
    """Provide a FeedClient over the in-memory backend, closed after the test."""
    client = FeedClient(backend, shutdown_timeout=1.0, enable_tracing=False)
    yield client
    await client.close()

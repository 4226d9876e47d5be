"""
Aggregate client: the event-sourced update protocol.

An AggregateClient is bound to one aggregate type. Every update reloads the
aggregate's history, folds it into a fresh state value, runs the caller's
business function against that state and commits the resulting events,
conditioned on the version that was loaded.
"""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Generic, TypeVar
from uuid import UUID

from eventclient.backends.interface import Backend
from eventclient.concurrency import concurrency_guard
from eventclient.delete import DeleteRequested, DeleteScope
from eventclient.events import Event, EventBatch
from eventclient.exceptions import AggregateNotFoundError
from eventclient.fold import EventFold
from eventclient.observability import (
    ATTR_AGGREGATE_ID,
    ATTR_AGGREGATE_TYPE,
    ATTR_EVENT_COUNT,
    ATTR_EXPECTED_VERSION,
    ATTR_VERSION,
    Tracer,
    create_tracer,
)

logger = logging.getLogger(__name__)

TState = TypeVar("TState")

# Pure function from the current state to the events it decides on
BusinessFunc = Callable[[TState], Sequence[Event]]


@dataclass(frozen=True)
class AggregateState(Generic[TState]):
    """
    A folded snapshot of an aggregate.

    Attributes:
        aggregate_id: ID of the aggregate
        version: Number of events the state was built from
        state: The folded state value
    """

    aggregate_id: UUID
    version: int
    state: TState


@dataclass(frozen=True)
class UpdateResult:
    """
    Outcome of an update.

    Attributes:
        loaded_version: Version the business function saw
        events: Events that were committed (empty if nothing was written)
    """

    loaded_version: int
    events: tuple[Event, ...] = ()

    @property
    def committed(self) -> bool:
        return bool(self.events)

    @property
    def new_version(self) -> int:
        return self.loaded_version + len(self.events)


class AggregateClient(Generic[TState]):
    """
    Client for one aggregate type.

    Features:
    - load → fold → business function → conditional append (update)
    - Optimistic concurrency on update, enabled by default
    - Direct appends (save), existence checks and two-phase deletes

    Conflicts are never retried here: re-running a business function that
    may close over stale data is the caller's decision.

    Example:
        >>> orders = AggregateClient(
        ...     backend=backend,
        ...     aggregate_type="order",
        ...     fold=EventFold([on(OrderPlaced, OrderState.placed)]),
        ...     initial_state=OrderState,
        ... )
        >>> await orders.update(order_id, lambda state: Order(state).cancel())
    """

    def __init__(
        self,
        backend: Backend,
        aggregate_type: str,
        fold: EventFold[TState],
        initial_state: Callable[[], TState],
        use_optimistic_concurrency: bool = True,
        # Tracing configuration
        tracer: Tracer | None = None,
        enable_tracing: bool = True,
    ) -> None:
        """
        Initialize the client.

        Args:
            backend: Backend that stores the aggregates
            aggregate_type: Type name of the aggregate (e.g., 'order')
            fold: Handler registry used to rebuild state
            initial_state: Factory for the zero value of the state
            use_optimistic_concurrency: Condition update() appends on the
                loaded version (default True)
            tracer: Optional custom Tracer instance
            enable_tracing: If True, emit OpenTelemetry spans. Ignored if
                tracer is explicitly provided.
        """
        if not aggregate_type:
            raise ValueError("aggregate_type must be set")

        self._tracer = tracer or create_tracer(__name__, enable_tracing)
        self._backend = backend
        self._aggregate_type = aggregate_type
        self._fold = fold
        self._initial_state = initial_state
        self._use_optimistic_concurrency = use_optimistic_concurrency

    @property
    def aggregate_type(self) -> str:
        return self._aggregate_type

    @property
    def backend(self) -> Backend:
        return self._backend

    @property
    def use_optimistic_concurrency(self) -> bool:
        return self._use_optimistic_concurrency

    async def load(
        self,
        aggregate_id: UUID,
        *,
        tenant_id: UUID | None = None,
    ) -> AggregateState[TState]:
        """
        Load and fold an aggregate without writing anything.

        Raises:
            AggregateNotFoundError: If the aggregate has no history
            UnknownEventTypeError: If the history holds an unhandled event type
        """
        loaded = await self._backend.load_aggregate(self._aggregate_type, aggregate_id, tenant_id)
        state = self._fold.fold(self._initial_state(), loaded.events)
        return AggregateState(aggregate_id=aggregate_id, version=loaded.version, state=state)

    async def update(
        self,
        aggregate_id: UUID,
        business_fn: BusinessFunc[TState],
        *,
        tenant_id: UUID | None = None,
        create_missing: bool = False,
    ) -> UpdateResult:
        """
        Run business logic against the current state and commit its events.

        Args:
            aggregate_id: ID of the aggregate
            business_fn: Pure function returning the events to append; it
                must not perform I/O
            tenant_id: Tenant the aggregate belongs to
            create_missing: Treat an aggregate without history as the zero
                state at version 0 instead of raising

        Returns:
            UpdateResult with the loaded version and the committed events

        Raises:
            AggregateNotFoundError: If the aggregate has no history and
                create_missing is False
            ConcurrencyConflictError: If another writer committed after the load
            UnknownEventTypeError: If the history holds an unhandled event type
            BackendError: On any other backend failure
        """
        with self._tracer.span(
            "eventclient.aggregate.update",
            {
                ATTR_AGGREGATE_ID: str(aggregate_id),
                ATTR_AGGREGATE_TYPE: self._aggregate_type,
            },
        ) as span:
            try:
                current = await self.load(aggregate_id, tenant_id=tenant_id)
            except AggregateNotFoundError:
                if not create_missing:
                    raise
                current = AggregateState(
                    aggregate_id=aggregate_id,
                    version=0,
                    state=self._initial_state(),
                )

            events = tuple(business_fn(current.state))

            if span:
                span.set_attribute(ATTR_VERSION, current.version)
                span.set_attribute(ATTR_EVENT_COUNT, len(events))

            if not events:
                logger.debug(
                    "No events produced for %s/%s, skipping append",
                    self._aggregate_type,
                    aggregate_id,
                )
                return UpdateResult(loaded_version=current.version)

            expected_version = current.version if self._use_optimistic_concurrency else None
            await self._append(
                aggregate_id,
                EventBatch(events=events, expected_version=expected_version),
                tenant_id,
            )

            logger.debug(
                "Updated %s/%s from version %d with %d event(s)",
                self._aggregate_type,
                aggregate_id,
                current.version,
                len(events),
            )
            return UpdateResult(loaded_version=current.version, events=events)

    async def save(
        self,
        aggregate_id: UUID,
        events: Sequence[Event],
        *,
        tenant_id: UUID | None = None,
        expected_version: int | None = None,
    ) -> None:
        """
        Append events without loading the aggregate first.

        Args:
            aggregate_id: ID of the aggregate
            events: Events to append; an empty sequence is a no-op
            tenant_id: Tenant the aggregate belongs to
            expected_version: Optional version the append is conditioned on
                (0 for an aggregate that must not exist yet)

        Raises:
            ConcurrencyConflictError: If expected_version is stale
            BackendError: On any other backend failure
        """
        if not events:
            return

        with self._tracer.span(
            "eventclient.aggregate.save",
            {
                ATTR_AGGREGATE_ID: str(aggregate_id),
                ATTR_AGGREGATE_TYPE: self._aggregate_type,
                ATTR_EVENT_COUNT: len(events),
            },
        ):
            await self._append(
                aggregate_id,
                EventBatch(events=tuple(events), expected_version=expected_version),
                tenant_id,
            )

    async def exists(self, aggregate_id: UUID, *, tenant_id: UUID | None = None) -> bool:
        """Check whether the aggregate has any stored history."""
        return await self._backend.aggregate_exists(self._aggregate_type, aggregate_id, tenant_id)

    async def delete_by_id(
        self,
        aggregate_id: UUID,
        *,
        tenant_id: UUID | None = None,
    ) -> DeleteRequested:
        """Request deletion of a single aggregate; confirm() performs it."""
        return await self._request_delete(
            DeleteScope(self._aggregate_type, aggregate_id=aggregate_id, tenant_id=tenant_id)
        )

    async def delete_by_type(self, *, tenant_id: UUID | None = None) -> DeleteRequested:
        """Request deletion of every aggregate of this type; confirm() performs it."""
        return await self._request_delete(DeleteScope(self._aggregate_type, tenant_id=tenant_id))

    async def _request_delete(self, scope: DeleteScope) -> DeleteRequested:
        token = await self._backend.request_delete(scope)
        logger.debug("Delete token issued for %s", scope)
        return DeleteRequested(self._backend, scope, token)

    async def _append(
        self,
        aggregate_id: UUID,
        batch: EventBatch,
        tenant_id: UUID | None,
    ) -> None:
        with self._tracer.span(
            "eventclient.aggregate.append",
            {
                ATTR_AGGREGATE_ID: str(aggregate_id),
                ATTR_AGGREGATE_TYPE: self._aggregate_type,
                ATTR_EVENT_COUNT: len(batch.events),
                ATTR_EXPECTED_VERSION: -1 if batch.expected_version is None else batch.expected_version,
            },
        ):
            async with concurrency_guard(
                aggregate_type=self._aggregate_type,
                aggregate_id=aggregate_id,
                expected_version=batch.expected_version,
            ):
                await self._backend.append_events(
                    self._aggregate_type, aggregate_id, batch, tenant_id
                )


__all__ = [
    "AggregateClient",
    "AggregateState",
    "BusinessFunc",
    "UpdateResult",
]

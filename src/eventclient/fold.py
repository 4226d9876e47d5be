"""
Event fold: rebuilding aggregate state from an event stream.

An ``EventFold`` owns an immutable registry from event type name to a
``FoldHandler``. Folding is a strict left-to-right reduction; every event
must have a handler, otherwise the client and the backend disagree about
the schema and ``UnknownEventTypeError`` is raised.

Example:
    >>> class OrderPlaced(BaseModel):
    ...     order_id: UUID
    ...     amount: int
    >>>
    >>> def placed(state: OrderState, event: Event) -> OrderState:
    ...     payload = event.data  # OrderPlaced, validated at fold time
    ...     return state.model_copy(update={"status": "placed", "amount": payload.amount})
    >>>
    >>> fold = EventFold([on(OrderPlaced, placed)])
    >>> state = fold.fold(OrderState(), stored_events)
"""

import functools
import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Generic, TypeVar

from pydantic import BaseModel

from eventclient.events import Event
from eventclient.exceptions import DuplicateHandlerError, UnknownEventTypeError

logger = logging.getLogger(__name__)

TState = TypeVar("TState")


@dataclass(frozen=True)
class FoldHandler(Generic[TState]):
    """
    A registered handler for one event type.

    Attributes:
        event_type: Event type name this handler is resolved by
        apply: Pure function producing the next state
        data_type: Optional payload model; when set, ``event.data`` is
            validated into it before ``apply`` runs
    """

    event_type: str
    apply: Callable[[TState, Event], TState]
    data_type: type[BaseModel] | None = None

    def __call__(self, state: TState, event: Event) -> TState:
        if self.data_type is not None and not isinstance(event.data, self.data_type):
            event = event.model_copy(update={"data": self.data_type.model_validate(event.data)})
        return self.apply(state, event)


def on(
    event: type[BaseModel] | str,
    apply: Callable[[Any, Event], Any],
    *,
    event_type: str | None = None,
) -> FoldHandler[Any]:
    """
    Build a FoldHandler.

    Args:
        event: Either a payload model class (its name becomes the event type
            and its schema validates the payload) or a plain event type name
        apply: Handler ``(state, event) -> state``
        event_type: Override the event type name derived from a model class,
            for backends that use names like ``"order-placed"``
    """
    if isinstance(event, str):
        return FoldHandler(event_type=event_type or event, apply=apply)
    return FoldHandler(event_type=event_type or event.__name__, apply=apply, data_type=event)


class EventFold(Generic[TState]):
    """
    Immutable handler registry plus the fold over it.

    The registry is fixed at construction time. Sessions against different
    aggregates may share one EventFold since folding keeps no state of its
    own.
    """

    def __init__(self, handlers: Iterable[FoldHandler[TState]] = ()) -> None:
        registry: dict[str, FoldHandler[TState]] = {}
        for handler in handlers:
            if handler.event_type in registry:
                raise DuplicateHandlerError(handler.event_type)
            registry[handler.event_type] = handler
        self._handlers: Mapping[str, FoldHandler[TState]] = MappingProxyType(registry)

    @property
    def handlers(self) -> Mapping[str, FoldHandler[TState]]:
        """Read-only view of the registry."""
        return self._handlers

    @property
    def handled_event_types(self) -> list[str]:
        return list(self._handlers)

    def can_handle(self, event_type: str) -> bool:
        return event_type in self._handlers

    def resolve(self, event: Event) -> FoldHandler[TState]:
        """
        Find the handler for an event.

        Raises:
            UnknownEventTypeError: If no handler is registered for the event type
        """
        try:
            return self._handlers[event.event_type]
        except KeyError:
            raise UnknownEventTypeError(event.event_type, self.handled_event_types) from None

    def apply(self, state: TState, event: Event) -> TState:
        """Apply a single event to a state value."""
        return self.resolve(event)(state, event)

    def fold(self, initial_state: TState, events: Iterable[Event]) -> TState:
        """
        Reduce events, in stream order, into a state value.

        Args:
            initial_state: Zero value of the state
            events: Stored events, oldest first

        Returns:
            The state after every event has been applied; ``initial_state``
            itself when there are no events

        Raises:
            UnknownEventTypeError: If any event has no registered handler
        """
        state = functools.reduce(self.apply, events, initial_state)
        logger.debug("Folded events into %s", type(state).__name__)
        return state


__all__ = [
    "EventFold",
    "FoldHandler",
    "on",
]

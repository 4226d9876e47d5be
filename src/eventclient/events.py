"""
Event data model.

Events are immutable facts about an aggregate. The client never interprets
``data`` or ``metadata``; they travel to and from the backend verbatim and
are only given a shape by the fold handlers that consume them.
"""

from __future__ import annotations

from typing import Any, TypeVar
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

TPayload = TypeVar("TPayload", bound=BaseModel)


class Event(BaseModel):
    """
    A single domain event as stored by the backend.

    Attributes:
        event_type: Type name used to route the event to a fold handler
        event_id: Unique identifier of this event
        data: Opaque payload (a JSON object on the wire, or a validated
            pydantic model once a typed fold handler has seen it)
        metadata: Opaque metadata dictionary

    Example:
        >>> class OrderPlaced(BaseModel):
        ...     order_id: UUID
        ...     amount: int
        >>>
        >>> event = Event.from_payload(OrderPlaced(order_id=uuid4(), amount=123))
        >>> event.event_type
        'OrderPlaced'
        >>> event.payload(OrderPlaced).amount
        123
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    event_type: str = Field(..., alias="eventType", min_length=1)
    event_id: UUID = Field(default_factory=uuid4, alias="eventId")
    data: Any = Field(default_factory=dict)
    metadata: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def of(
        cls,
        event_type: str,
        data: Any = None,
        metadata: dict[str, Any] | None = None,
    ) -> Event:
        """Create an untyped event from a type name and a raw payload."""
        return cls(
            event_type=event_type,
            data=data if data is not None else {},
            metadata=metadata or {},
        )

    @classmethod
    def from_payload(
        cls,
        payload: BaseModel,
        event_type: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> Event:
        """
        Create an event from a pydantic payload model.

        The event type defaults to the payload's class name.
        """
        return cls(
            event_type=event_type or type(payload).__name__,
            data=payload.model_dump(mode="json"),
            metadata=metadata or {},
        )

    def payload(self, model_type: type[TPayload]) -> TPayload:
        """Validate ``data`` into the given payload model."""
        if isinstance(self.data, model_type):
            return self.data
        return model_type.model_validate(self.data)

    def to_wire(self) -> dict[str, Any]:
        """Serialize to the JSON shape the backend expects."""
        data = self.data.model_dump(mode="json") if isinstance(self.data, BaseModel) else self.data
        return {
            "eventType": self.event_type,
            "eventId": str(self.event_id),
            "data": data,
            "metadata": self.metadata,
        }


class EventBatch(BaseModel):
    """
    Events committed atomically as one unit.

    When ``expected_version`` is set the backend only accepts the batch if
    the aggregate is still at that version; when it is None the batch is
    appended unconditionally.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    events: tuple[Event, ...]
    expected_version: int | None = Field(default=None, alias="expectedVersion", ge=0)

    @property
    def is_conditional(self) -> bool:
        return self.expected_version is not None

    def to_wire(self) -> dict[str, Any]:
        body: dict[str, Any] = {"events": [event.to_wire() for event in self.events]}
        if self.expected_version is not None:
            body["expectedVersion"] = self.expected_version
        return body


class LoadedAggregate(BaseModel):
    """An aggregate's stored history as returned by the backend."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    aggregate_id: UUID = Field(..., alias="aggregateId")
    aggregate_type: str = Field(..., alias="aggregateType")
    version: int = Field(default=0, alias="aggregateVersion", ge=0)
    events: tuple[Event, ...] = ()


__all__ = [
    "Event",
    "EventBatch",
    "LoadedAggregate",
]

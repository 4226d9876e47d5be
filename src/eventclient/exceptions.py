"""Library exceptions for the eventclient package."""

from uuid import UUID


class EventClientError(Exception):
    """Base exception for eventclient library."""

    pass


class AggregateNotFoundError(EventClientError):
    """Raised when an aggregate has no stored history."""

    def __init__(self, aggregate_type: str, aggregate_id: UUID) -> None:
        self.aggregate_type = aggregate_type
        self.aggregate_id = aggregate_id
        super().__init__(f"Aggregate of type {aggregate_type} not found: {aggregate_id}")


class ConcurrencyConflictError(EventClientError):
    """
    Raised when an append is rejected because the expected version is stale.

    Another writer committed to the aggregate between load and save. The
    client never retries on its own; reload the aggregate and run the
    business logic again if that is safe for your use case.

    Attributes:
        aggregate_type: Type of the aggregate that was written
        aggregate_id: ID of the aggregate that was written
        expected_version: Version the batch was conditioned on (None when
            the batch was unconditional and the backend still refused it)
    """

    def __init__(
        self,
        aggregate_type: str,
        aggregate_id: UUID,
        expected_version: int | None,
    ) -> None:
        self.aggregate_type = aggregate_type
        self.aggregate_id = aggregate_id
        self.expected_version = expected_version
        super().__init__(
            f"Concurrency conflict for {aggregate_type}/{aggregate_id}: "
            f"aggregate is no longer at expected version {expected_version}"
        )


class UnknownEventTypeError(EventClientError):
    """
    Raised when a fold meets an event type with no registered handler.

    This signals a schema mismatch between the client and the backend and
    is not retryable.

    Attributes:
        event_type: The unhandled event type name
        known_types: Event types that do have handlers
    """

    def __init__(self, event_type: str, known_types: list[str]) -> None:
        self.event_type = event_type
        self.known_types = known_types
        known = ", ".join(known_types) if known_types else "none"
        super().__init__(
            f"No matching handler for event type '{event_type}'. Registered handlers: {known}"
        )


class BackendError(EventClientError):
    """Raised for transport or protocol failures reported by the backend."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        prefix = f"[{status_code}] " if status_code is not None else ""
        super().__init__(f"{prefix}{message}")


class PreconditionFailedError(EventClientError):
    """Raised when a delete token is reused or unknown."""

    pass


class DuplicateHandlerError(ValueError):
    """Raised when two fold handlers are registered for the same event type."""

    def __init__(self, event_type: str) -> None:
        self.event_type = event_type
        super().__init__(f"A handler for event type '{event_type}' is already registered")


class FeedClientClosedError(EventClientError):
    """Raised when a subscription is started on a closed feed client."""

    pass

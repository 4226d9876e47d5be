"""
Classification of append failures.

Backends report every failed append as a BackendError carrying the status
code they got. A 409 means the batch's expected version was stale; that case
is turned into ConcurrencyConflictError so callers can reload and retry.
Every other failure is left untouched.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from uuid import UUID

from eventclient.exceptions import BackendError, ConcurrencyConflictError

logger = logging.getLogger(__name__)

CONFLICT_STATUS = 409


def is_version_conflict(error: BaseException) -> bool:
    return isinstance(error, BackendError) and error.status_code == CONFLICT_STATUS


def classify_append_error(
    error: Exception,
    *,
    aggregate_type: str,
    aggregate_id: UUID,
    expected_version: int | None,
) -> Exception:
    """
    Map a failed append to the error the caller should see.

    Returns:
        ConcurrencyConflictError for a version conflict, otherwise ``error``
    """
    if is_version_conflict(error):
        return ConcurrencyConflictError(aggregate_type, aggregate_id, expected_version)
    return error


@asynccontextmanager
async def concurrency_guard(
    *,
    aggregate_type: str,
    aggregate_id: UUID,
    expected_version: int | None,
) -> AsyncIterator[None]:
    """
    Wrap an append so version conflicts surface as ConcurrencyConflictError.

    Example:
        >>> async with concurrency_guard(
        ...     aggregate_type="order",
        ...     aggregate_id=order_id,
        ...     expected_version=batch.expected_version,
        ... ):
        ...     await backend.append_events("order", order_id, batch)
    """
    try:
        yield
    except Exception as e:
        classified = classify_append_error(
            e,
            aggregate_type=aggregate_type,
            aggregate_id=aggregate_id,
            expected_version=expected_version,
        )
        if classified is e:
            raise
        logger.info(
            "Append to %s/%s rejected: expected version %s is stale",
            aggregate_type,
            aggregate_id,
            expected_version,
        )
        raise classified from e


__all__ = [
    "CONFLICT_STATUS",
    "classify_append_error",
    "concurrency_guard",
    "is_version_conflict",
]

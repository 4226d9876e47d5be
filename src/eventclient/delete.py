"""
Two-phase delete.

Deleting an aggregate, and above all a whole aggregate type, cannot be
undone. The backend therefore hands out a token first and only deletes when
that token is echoed back. The client models the exchange as two protocol
values:

    DeleteRequested(token) --confirm()--> DeleteConfirmed

A DeleteRequested can be confirmed exactly once.

Example:
    >>> pending = await orders.delete_by_id(order_id)
    >>> confirmed = await pending.confirm()
    >>> await pending.confirm()  # raises PreconditionFailedError
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING
from uuid import UUID

from eventclient.exceptions import PreconditionFailedError

if TYPE_CHECKING:
    from eventclient.backends.interface import Backend

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeleteScope:
    """
    What a delete covers.

    Attributes:
        aggregate_type: Aggregate type the delete applies to
        aggregate_id: Single aggregate to delete; None deletes every
            aggregate of the type
        tenant_id: Tenant the delete is scoped to
    """

    aggregate_type: str
    aggregate_id: UUID | None = None
    tenant_id: UUID | None = None

    def __post_init__(self) -> None:
        if not self.aggregate_type:
            raise ValueError("aggregate_type must not be empty")

    @property
    def is_type_wide(self) -> bool:
        return self.aggregate_id is None

    def __str__(self) -> str:
        target = self.aggregate_type if self.is_type_wide else f"{self.aggregate_type}/{self.aggregate_id}"
        return f"{target} (tenant {self.tenant_id})" if self.tenant_id else target


@dataclass(frozen=True)
class DeleteConfirmed:
    """Terminal state of a delete handshake."""

    scope: DeleteScope
    token: str


class DeleteRequested:
    """
    A delete that has a token but has not been performed yet.

    Instances are obtained from AggregateClient.delete_by_id or
    AggregateClient.delete_by_type, never built by hand.
    """

    def __init__(self, backend: Backend, scope: DeleteScope, token: str) -> None:
        self._backend = backend
        self._scope = scope
        self._token = token
        self._confirmed = False

    @property
    def scope(self) -> DeleteScope:
        return self._scope

    @property
    def token(self) -> str:
        return self._token

    @property
    def is_confirmed(self) -> bool:
        return self._confirmed

    async def confirm(self) -> DeleteConfirmed:
        """
        Perform the delete.

        Returns:
            DeleteConfirmed for the same scope and token

        Raises:
            PreconditionFailedError: If this handshake was already confirmed,
                or the backend rejects the token
        """
        if self._confirmed:
            raise PreconditionFailedError(f"Delete token for {self._scope} has already been used")

        # Consumed before the call: a token the backend may have accepted is never resent.
        self._confirmed = True
        await self._backend.confirm_delete(self._scope, self._token)

        logger.info(
            "Deleted %s",
            self._scope,
            extra={
                "aggregate_type": self._scope.aggregate_type,
                "aggregate_id": str(self._scope.aggregate_id) if self._scope.aggregate_id else None,
            },
        )
        return DeleteConfirmed(scope=self._scope, token=self._token)

    def __repr__(self) -> str:
        state = "confirmed" if self._confirmed else "requested"
        return f"DeleteRequested({self._scope}, {state})"


__all__ = [
    "DeleteConfirmed",
    "DeleteRequested",
    "DeleteScope",
]

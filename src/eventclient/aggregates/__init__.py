"""
Aggregate support for eventclient.

This module provides:
- AggregateClient: Update protocol, direct appends, existence checks and
  deletes for one aggregate type
- AggregateState: A folded snapshot of an aggregate
- UpdateResult: Outcome of AggregateClient.update
"""

from eventclient.aggregates.client import (
    AggregateClient,
    AggregateState,
    BusinessFunc,
    UpdateResult,
)

__all__ = [
    "AggregateClient",
    "AggregateState",
    "BusinessFunc",
    "UpdateResult",
]

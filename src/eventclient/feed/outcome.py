"""
Outcomes of delivering one feed entry to a handler.

A handler acknowledges an entry by returning None (or
``EntryDirective.ADVANCE``) and asks for the entry to be retried by
returning ``EntryDirective.RETRY``. The pump turns every delivery into one
of three outcomes and matches on them:

- Advance: the entry was handled, move the cursor to it
- Retry: leave the cursor where it is and carry on with the next entry
- Fail: the handler raised; the error belongs to the caller
"""

from dataclasses import dataclass
from enum import Enum


class EntryDirective(Enum):
    """What a feed handler asks the pump to do with the entry it was given."""

    ADVANCE = "advance"
    RETRY = "retry"


@dataclass(frozen=True)
class Advance:
    sequence_number: int


@dataclass(frozen=True)
class Retry:
    sequence_number: int


@dataclass(frozen=True)
class Fail:
    sequence_number: int
    error: Exception


EntryOutcome = Advance | Retry | Fail


__all__ = [
    "Advance",
    "EntryDirective",
    "EntryOutcome",
    "Fail",
    "Retry",
]

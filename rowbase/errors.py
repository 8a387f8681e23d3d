"""
Exception hierarchy for rowbase.

Precondition failures signal a programming error by whoever supplied the schema
or called the engine (missing primary keys, NULL key values, no record type for
hydration). They are raised immediately and never retried. Driver errors from
sqlite3/psycopg are not wrapped; they reach the caller unchanged.
"""

from __future__ import annotations


class RowbaseError(Exception):
    """Base class for errors raised by rowbase itself."""


class PreconditionError(RowbaseError):
    """A required condition on schema or record state does not hold."""


class HydrationError(PreconditionError):
    """A result row could not be turned into a record of the requested type."""


class ConnectionNotFoundError(RowbaseError, LookupError):
    """No connection is registered under the requested name."""


__all__ = [
    "RowbaseError",
    "PreconditionError",
    "HydrationError",
    "ConnectionNotFoundError",
]

# src/dayroll/core/errors.py

"""
Error taxonomy shared by the stores, the rollover engine and the HTTP layer.

Unknown ids on toggle/delete are NOT errors at the store level (they return None/False);
NotFoundError exists for surfaces that must report them (HTTP 404).
"""

from __future__ import annotations


class DayrollError(Exception):
    """Base class for all dayroll errors."""


class ValidationError(DayrollError):
    """A required field is blank or malformed. Nothing was written."""


class InvariantViolation(DayrollError):
    """The operation would break a store invariant (e.g. deleting the last profile)."""


class NotFoundError(DayrollError):
    """An id did not match any record."""


class PersistenceFailure(DayrollError):
    """The key-value adapter failed to read or write. In-memory state is unchanged."""

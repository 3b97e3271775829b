"""
errors.py

Exception types raised by interval construction, overlap filtering and
covariate matching. All derive from ValueError so existing callers that
guard on ValueError keep working.
"""

from __future__ import annotations

from typing import Any, Optional


class RangeMatchError(ValueError):
    """Base class for rangematch errors."""


class InvalidInterval(RangeMatchError):
    """A record cannot form a valid interval (bad coordinates, strand or fields)."""

    def __init__(self, message: str, record: Any = None) -> None:
        super().__init__(message)
        self.record = record


class MissingCovariate(RangeMatchError):
    """An interval has no (finite) value for a required covariate."""

    def __init__(self, covariate: str, interval_id: Optional[str] = None) -> None:
        where = f" on interval '{interval_id}'" if interval_id is not None else ""
        super().__init__(f"Covariate '{covariate}' has no finite value{where}.")
        self.covariate = covariate
        self.interval_id = interval_id


class UnsupportedConfiguration(RangeMatchError):
    """A matching configuration is invalid or unsupported."""


class EmptyPool(RangeMatchError):
    """The pool set has no intervals to match from."""

    def __init__(self, message: str = "Pool interval set is empty; nothing to match from.") -> None:
        super().__init__(message)

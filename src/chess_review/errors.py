"""Failure conditions raised by the review scheduler and its stores."""

from __future__ import annotations


class ReviewError(RuntimeError):
    """Base class for scheduler failures surfaced to callers."""


class NotFoundError(ReviewError):
    """The referenced mistake does not exist."""


class ConflictError(ReviewError):
    """A study session already exists for the mistake."""


class InvalidInputError(ReviewError, ValueError):
    """Malformed interval, difficulty or record fields."""


class StoreUnavailableError(ReviewError):
    """The underlying SQLite database failed. Not retried here."""

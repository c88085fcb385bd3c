"""Error types raised by the triage engine and service."""

from __future__ import annotations


class TriageError(Exception):
    """Base class for triage failures."""


class InvalidInputError(TriageError, ValueError):
    """Raised when the symptom description is missing or blank."""


class InternalError(TriageError):
    """Raised when a result could not be assembled for well-formed input."""


__all__ = [
    "TriageError",
    "InvalidInputError",
    "InternalError",
]

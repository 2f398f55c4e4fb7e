from __future__ import annotations

from .enums import ErrorType


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class ClockError(DomainError):
    """A rejected clock or approval action.

    Services raise it internally; public operations convert it to a typed result.
    """

    def __init__(self, error_type: ErrorType, message: str):
        super().__init__(message)
        self.error_type = error_type

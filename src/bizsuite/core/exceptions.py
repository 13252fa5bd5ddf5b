from __future__ import annotations

from typing import Sequence


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    def __init__(self, message: str, reasons: Sequence[str] = ()):
        super().__init__(message)
        self.reasons = tuple(reasons) or (message,)


class InvalidTransitionError(DomainError):
    """Raised when a lifecycle transition is not legal from the current state."""


class NotFoundError(DomainError):
    """Raised when a referenced record does not exist."""


class DependencyUnavailableError(DomainError):
    """Raised when an external collaborator (notifications, storage) fails."""

"""Uniform outcome type for lifecycle guards and services.

Guards never raise on an illegal transition; they return a failed ``Result``
and callers branch on its truthiness, or call ``unwrap()`` at the request
boundary to turn it into a ``DomainError``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Generic, Iterable, Optional, TypeVar

from .exceptions import (
    DependencyUnavailableError,
    DomainError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)

T = TypeVar("T")
U = TypeVar("U")


class ErrorKind(str, Enum):
    INVALID_TRANSITION = "invalid_transition"
    VALIDATION_FAILED = "validation_failed"
    DEPENDENCY_UNAVAILABLE = "dependency_unavailable"
    NOT_FOUND = "not_found"


_EXCEPTIONS = {
    ErrorKind.INVALID_TRANSITION: InvalidTransitionError,
    ErrorKind.DEPENDENCY_UNAVAILABLE: DependencyUnavailableError,
    ErrorKind.NOT_FOUND: NotFoundError,
}


@dataclass(frozen=True)
class Failure:
    kind: ErrorKind
    message: str
    reasons: tuple[str, ...] = ()

    def to_exception(self) -> DomainError:
        if self.kind == ErrorKind.VALIDATION_FAILED:
            return ValidationError(self.message, self.reasons)
        return _EXCEPTIONS[self.kind](self.message)


@dataclass(frozen=True)
class Result(Generic[T]):
    value: Optional[T] = None
    error: Optional[Failure] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def __bool__(self) -> bool:
        return self.ok

    @property
    def kind(self) -> Optional[ErrorKind]:
        return self.error.kind if self.error else None

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error.to_exception()
        return self.value  # type: ignore[return-value]

    def map(self, fn: Callable[[T], U]) -> "Result[U]":
        if self.error is not None:
            return Result(error=self.error)
        return Result(value=fn(self.value))  # type: ignore[arg-type]


def ok(value: T = None) -> Result[T]:
    return Result(value=value)


def fail(kind: ErrorKind, message: str, reasons: Iterable[str] = ()) -> Result:
    return Result(error=Failure(kind=kind, message=message, reasons=tuple(reasons)))


def invalid_transition(message: str) -> Result:
    return fail(ErrorKind.INVALID_TRANSITION, message)


def validation_failed(reasons: Iterable[str], message: str = "Validation failed") -> Result:
    reasons = tuple(reasons)
    if len(reasons) == 1 and message == "Validation failed":
        message = reasons[0]
    return fail(ErrorKind.VALIDATION_FAILED, message, reasons)


def not_found(message: str) -> Result:
    return fail(ErrorKind.NOT_FOUND, message)


def dependency_unavailable(message: str) -> Result:
    return fail(ErrorKind.DEPENDENCY_UNAVAILABLE, message)

"""Error types and operation results."""

from dataclasses import dataclass, field
from typing import Generic, TypeVar

T = TypeVar("T")


class PebbleError(Exception):
    """Base class for pebble-tree errors."""


class LogicError(PebbleError):
    """An invariant was violated by the caller. Not recoverable."""


class AdapterError(PebbleError):
    """The remote store could not be reached or rejected a request."""


class DetachedNodeError(PebbleError):
    """A node left the tree while an operation on it was in flight."""


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of an operation that talks to the remote store."""

    value: T | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T | None = None) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: str | BaseException) -> "Result[T]":
        if isinstance(error, BaseException):
            return cls(error=describe_error(error))
        return cls(error=error)


@dataclass(frozen=True)
class BatchResult(Generic[T]):
    """Per-item outcome of a batch operation.

    Items succeed or fail independently; nothing is rolled back.
    ``failed`` pairs each failed source id with its error message.
    """

    succeeded: list[T] = field(default_factory=list)
    failed: list[tuple[str, str]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed

    def __len__(self) -> int:
        return len(self.succeeded)


def describe_error(error: BaseException) -> str:
    """Human-readable one-liner for a caught exception."""
    text = str(error)
    return f"{type(error).__name__}: {text}" if text else type(error).__name__

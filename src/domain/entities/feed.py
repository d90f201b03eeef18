"""Value objects exchanged with the backing store."""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Generic, TypeVar

T = TypeVar("T")

Unsubscribe = Callable[[], None]


@dataclass(frozen=True, slots=True)
class FeedEvent(Generic[T]):
    """One delivery from a live feed.

    Either ``error`` is set, or ``items`` holds the complete current result
    set of the feed. A snapshot is never a delta.
    """

    items: tuple[T, ...] = ()
    error: str | None = None

    @classmethod
    def snapshot(cls, items: "list[T] | tuple[T, ...]") -> "FeedEvent[T]":
        return cls(items=tuple(items))

    @classmethod
    def failure(cls, error: str) -> "FeedEvent[T]":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True, slots=True)
class LookupResult(Generic[T]):
    """Result of a point lookup. ``value`` is None when missing or failed."""

    value: T | None = None
    error: str | None = None

    @classmethod
    def found(cls, value: T) -> "LookupResult[T]":
        return cls(value=value)

    @classmethod
    def missing(cls, error: str) -> "LookupResult[T]":
        return cls(error=error)


@dataclass(frozen=True, slots=True)
class MutationResult:
    """Result of a backend mutation."""

    success: bool
    error: str | None = None
    details: dict[str, object] = field(default_factory=dict)

    @classmethod
    def ok(cls, **details: object) -> "MutationResult":
        return cls(success=True, details=dict(details))

    @classmethod
    def failed(cls, error: str) -> "MutationResult":
        return cls(success=False, error=error)

"""Helpers for keeping ``IN (...)`` predicates within store limits."""
from typing import Iterator, Sequence, TypeVar

T = TypeVar("T")


def chunked(items: Sequence[T], size: int) -> Iterator[list[T]]:
    """Yield consecutive slices of ``items`` holding at most ``size`` elements."""
    if size < 1:
        raise ValueError("size must be at least 1")
    for start in range(0, len(items), size):
        yield list(items[start:start + size])


def sample_ids(ids: Sequence[T], limit: int = 10) -> list[T]:
    """First ``limit`` ids, for log records."""
    return list(ids[:limit])

"""Typed outcomes of cache reads."""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

from src.catalog.core.exceptions import CacheError

T = TypeVar("T")


class CacheStatus(str, Enum):
    HIT = "hit"
    MISS = "miss"
    # backend unreachable: degrade to the store
    UNAVAILABLE = "unavailable"
    # payload undecodable: alert, evict, degrade to the store
    CORRUPTED = "corrupted"


@dataclass(frozen=True)
class CacheLookup(Generic[T]):
    """Result of a single cache read."""

    status: CacheStatus
    value: T | None = None
    error: CacheError | None = None

    @property
    def hit(self) -> bool:
        return self.status is CacheStatus.HIT

    @classmethod
    def found(cls, value: T) -> "CacheLookup[T]":
        return cls(CacheStatus.HIT, value)

    @classmethod
    def missing(cls) -> "CacheLookup[T]":
        return cls(CacheStatus.MISS)

    @classmethod
    def unavailable(cls, error: CacheError) -> "CacheLookup[T]":
        return cls(CacheStatus.UNAVAILABLE, error=error)

    @classmethod
    def corrupted(cls, error: CacheError) -> "CacheLookup[T]":
        return cls(CacheStatus.CORRUPTED, error=error)


@dataclass
class CacheStats:
    """In-process counters for one CacheService instance."""

    backend: str
    hits: int = 0
    misses: int = 0
    writes: int = 0
    evictions: int = 0
    unavailable: int = 0
    corrupted: int = 0

    @property
    def hit_ratio(self) -> float:
        lookups = self.hits + self.misses
        return self.hits / lookups if lookups else 0.0

    def as_dict(self) -> dict[str, float | int | str]:
        return {
            "backend": self.backend,
            "hits": self.hits,
            "misses": self.misses,
            "hit_ratio": round(self.hit_ratio, 4),
            "writes": self.writes,
            "evictions": self.evictions,
            "unavailable": self.unavailable,
            "corrupted": self.corrupted,
        }

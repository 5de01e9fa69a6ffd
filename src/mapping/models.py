"""Data models for package name resolution."""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def cache_key(package_name: str) -> str:
    """Sanitize a package name into a storage-safe cache key.

    Distinct names can collapse onto one key (``foo+bar`` and ``foo_bar``);
    that collision is a known limitation.
    """
    return _UNSAFE_KEY_CHARS.sub("_", package_name)


class Outcome(Enum):
    """Tagged lookup state."""
    FOUND = "found"
    NOT_FOUND = "not_found"
    MISS = "miss"  # never queried, or only a stale entry exists


@dataclass(frozen=True)
class CacheEntry:
    """One cached resolution; value None means confirmed not found."""
    key: str
    value: Optional[str]
    written_at: float


@dataclass(frozen=True)
class LookupCandidate:
    """A repository/name pair taken from a lookup response."""
    repository: str
    name: str


@dataclass(frozen=True)
class ResolutionResult:
    """Per-package resolver outcome."""
    source_name: str
    target_name: Optional[str]
    outcome: Outcome
    from_cache: bool = False

    @property
    def found(self) -> bool:
        return self.outcome is Outcome.FOUND


@dataclass(frozen=True)
class ProgressEvent:
    """Emitted by the batch driver after each processed package."""
    index: int  # 1-based
    total: int
    package: str
    result: Optional[ResolutionResult] = None


@dataclass(frozen=True)
class MappingReport:
    """Ordered, immutable result of one batch run."""
    results: Tuple[ResolutionResult, ...] = field(default_factory=tuple)
    cancelled: bool = False

    @property
    def processed(self) -> int:
        return len(self.results)

    @property
    def found(self) -> int:
        return sum(1 for r in self.results if r.target_name is not None)

    @property
    def not_found(self) -> int:
        return self.processed - self.found

    def pairs(self):
        """Yield (source, target-or-None) in input order."""
        for r in self.results:
            yield r.source_name, r.target_name


def is_fresh(entry: CacheEntry, now: float, ttl: float) -> bool:
    """True iff the entry was written less than ttl seconds before now."""
    return now - entry.written_at < ttl

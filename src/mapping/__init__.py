"""Package name resolution engine.

This package maps source-distribution package names to target-distribution
names:
- models.py: cache keys, tagged outcomes, results and the mapping report
- cache.py: cache store abstraction with memory and file-per-key backends
- extractor.py: candidate parsing and repository precedence
- resolver.py: per-package cache/lookup orchestration
- batch.py: sequential batch driver with progress and cancellation
- report.py: text/JSON/CSV exporters
- inventory.py: package list files and host RPM inventory
"""

from .models import (
    CacheEntry,
    LookupCandidate,
    MappingReport,
    Outcome,
    ProgressEvent,
    ResolutionResult,
    cache_key,
)
from .cache import (
    CacheError,
    CacheStore,
    CacheUnavailableError,
    FileCacheStore,
    MemoryCacheStore,
)
from .resolver import PackageResolver
from .batch import BatchDriver, map_packages

__all__ = [
    "CacheEntry",
    "LookupCandidate",
    "MappingReport",
    "Outcome",
    "ProgressEvent",
    "ResolutionResult",
    "cache_key",
    "CacheError",
    "CacheStore",
    "CacheUnavailableError",
    "FileCacheStore",
    "MemoryCacheStore",
    "PackageResolver",
    "BatchDriver",
    "map_packages",
]

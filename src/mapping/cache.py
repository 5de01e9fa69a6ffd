"""Resolution cache stores.

``MemoryCacheStore`` backs unit tests; ``FileCacheStore`` persists one file
per cache key so an interrupted batch run can resume without re-querying
packages that were already resolved.
"""

from __future__ import annotations

import logging
import os
import tempfile
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from mapping.models import CacheEntry, is_fresh

logger = logging.getLogger(__name__)


class CacheError(OSError):
    """A single cache read or write failed."""


class CacheUnavailableError(CacheError):
    """The cache cannot be used at all (e.g. directory not creatable)."""


class CacheStore(ABC):
    """Key-value store of resolution outcomes with write timestamps."""

    def ensure_ready(self) -> None:
        """Prepare backing storage; raise CacheUnavailableError on failure."""

    @abstractmethod
    def get(self, key: str) -> Optional[CacheEntry]:
        """Return the entry for key, or None when absent."""

    @abstractmethod
    def put(self, key: str, value: Optional[str], now: float) -> None:
        """Store value (None = confirmed not found), replacing any entry."""

    @abstractmethod
    def invalidate(self, key: str) -> None:
        """Remove one entry; absent keys are ignored."""

    @abstractmethod
    def clear_all(self) -> int:
        """Remove every entry and return how many were removed."""

    @staticmethod
    def is_fresh(entry: CacheEntry, now: float, ttl: float) -> bool:
        """True iff entry is younger than ttl at time now."""
        return is_fresh(entry, now, ttl)


class MemoryCacheStore(CacheStore):
    """Dict-backed store; not persistent."""

    def __init__(self) -> None:
        self._entries: Dict[str, CacheEntry] = {}

    def get(self, key: str) -> Optional[CacheEntry]:
        return self._entries.get(key)

    def put(self, key: str, value: Optional[str], now: float) -> None:
        self._entries[key] = CacheEntry(key=key, value=value or None, written_at=now)

    def invalidate(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear_all(self) -> int:
        count = len(self._entries)
        self._entries.clear()
        return count

    def stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        negatives = sum(1 for e in self._entries.values() if e.value is None)
        return {
            "total_entries": len(self._entries),
            "not_found_entries": negatives,
        }


class FileCacheStore(CacheStore):
    """One file per key under a cache directory.

    File content is the resolved name; an empty file records a confirmed
    "not found". The file's modification time is the write timestamp.
    """

    _TMP_PREFIX = ".tmp-"

    def __init__(self, directory: str):
        self.directory = os.path.abspath(os.path.expanduser(directory))

    def ensure_ready(self) -> None:
        try:
            os.makedirs(self.directory, exist_ok=True)
        except OSError as exc:
            raise CacheUnavailableError(
                f"cache directory {self.directory} cannot be created: {exc}"
            ) from exc
        if not os.access(self.directory, os.R_OK | os.W_OK | os.X_OK):
            raise CacheUnavailableError(f"cache directory {self.directory} is not writable")

    def _path(self, key: str) -> str:
        if not key or key in (".", "..") or key.startswith(self._TMP_PREFIX):
            raise CacheError(f"unusable cache key {key!r}")
        return os.path.join(self.directory, key)

    def get(self, key: str) -> Optional[CacheEntry]:
        path = self._path(key)
        try:
            with open(path, "r", encoding="utf-8") as fh:
                content = fh.read().strip()
            written_at = os.stat(path).st_mtime
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as exc:
            raise CacheError(f"cannot read cache entry {path}: {exc}") from exc
        return CacheEntry(key=key, value=content or None, written_at=written_at)

    def put(self, key: str, value: Optional[str], now: float) -> None:
        path = self._path(key)
        tmp_path = None
        try:
            fd, tmp_path = tempfile.mkstemp(prefix=self._TMP_PREFIX, dir=self.directory)
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                if value:
                    fh.write(value + "\n")
                fh.flush()
                os.fsync(fh.fileno())
            os.utime(tmp_path, (now, now))
            os.replace(tmp_path, path)
            tmp_path = None
        except OSError as exc:
            raise CacheError(f"cannot write cache entry {path}: {exc}") from exc
        finally:
            if tmp_path is not None:
                try:
                    os.unlink(tmp_path)
                except OSError:
                    logger.debug("Could not remove temp file %s", tmp_path)

    def invalidate(self, key: str) -> None:
        try:
            os.unlink(self._path(key))
        except FileNotFoundError:
            pass
        except OSError as exc:
            raise CacheError(f"cannot remove cache entry {key}: {exc}") from exc

    def clear_all(self) -> int:
        removed = 0
        try:
            names = os.listdir(self.directory)
        except FileNotFoundError:
            return 0
        except OSError as exc:
            raise CacheError(f"cannot list cache directory {self.directory}: {exc}") from exc
        for name in names:
            path = os.path.join(self.directory, name)
            if not os.path.isfile(path):
                continue
            try:
                os.unlink(path)
                removed += 1
            except OSError as exc:
                raise CacheError(f"cannot remove cache entry {path}: {exc}") from exc
        return removed

    def stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        total = negatives = 0
        try:
            names = os.listdir(self.directory)
        except OSError:
            names = []
        for name in names:
            if name.startswith(self._TMP_PREFIX):
                continue
            path = os.path.join(self.directory, name)
            if os.path.isfile(path):
                total += 1
                if os.path.getsize(path) == 0:
                    negatives += 1
        return {
            "directory": self.directory,
            "total_entries": total,
            "not_found_entries": negatives,
        }

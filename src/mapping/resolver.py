"""Per-package resolution: cache first, rate-limited lookup on miss or expiry."""

from __future__ import annotations

import logging
import time
import urllib.parse
from typing import Callable, Optional

from constants import Constants
from common.http_client import LookupHttpClient, RateLimiter
from common.logging_utils import extra_context, is_debug_enabled
from mapping.cache import CacheError, CacheStore
from mapping.extractor import extract_target_name, is_empty_project_set
from mapping.models import CacheEntry, Outcome, ResolutionResult, cache_key

logger = logging.getLogger(__name__)


class PackageResolver:
    """Resolve source package names to target package names.

    Args:
        cache: Cache store holding previous outcomes.
        client: HTTP client used for lookups.
        rate_limiter: Gate enforcing the minimum interval between requests.
        clock: Wall-clock source for cache timestamps (epoch seconds).
        ttl: Cache entry lifetime in seconds.
        primary_repo: Target distribution's official repository name.
        community_repo: Target distribution's community repository name.
        base_url: Lookup API base URL.
        project_fallback: Fetch the project by identifier when the exact-name
            search returns an empty project set.
    """

    def __init__(
        self,
        cache: CacheStore,
        client: Optional[LookupHttpClient] = None,
        rate_limiter: Optional[RateLimiter] = None,
        *,
        clock: Callable[[], float] = time.time,
        ttl: Optional[float] = None,
        primary_repo: Optional[str] = None,
        community_repo: Optional[str] = None,
        base_url: Optional[str] = None,
        project_fallback: Optional[bool] = None,
    ):
        self.cache = cache
        self.client = client or LookupHttpClient()
        self.rate_limiter = rate_limiter or RateLimiter(Constants.RATE_LIMIT_INTERVAL_SEC)
        self._clock = clock
        self.ttl = float(ttl if ttl is not None else Constants.CACHE_TTL_SEC)
        self.primary_repo = primary_repo or Constants.TARGET_PRIMARY_REPO
        self.community_repo = community_repo or Constants.TARGET_COMMUNITY_REPO
        self.base_url = (base_url or Constants.LOOKUP_API_BASE).rstrip("/")
        self.project_fallback = (
            Constants.LOOKUP_PROJECT_FALLBACK if project_fallback is None else project_fallback
        )

    def ensure_ready(self) -> None:
        """Raise CacheUnavailableError when the cache cannot be used."""
        self.cache.ensure_ready()

    def _read_cache(self, name: str, key: str) -> Optional[CacheEntry]:
        try:
            return self.cache.get(key)
        except CacheError as exc:
            logger.warning("Cache read failed for '%s', treating as miss: %s", name, exc)
            return None

    def _write_cache(self, name: str, key: str, value: Optional[str]) -> None:
        try:
            self.cache.put(key, value, self._clock())
        except CacheError as exc:
            logger.warning("Cache write failed for '%s': %s", name, exc)

    def lookup_cached(self, name: str) -> ResolutionResult:
        """Answer from the cache only; Outcome.MISS when no fresh entry exists."""
        key = cache_key(name)
        entry = self._read_cache(name, key)
        if entry is None or not self.cache.is_fresh(entry, self._clock(), self.ttl):
            return ResolutionResult(name, None, Outcome.MISS, from_cache=False)
        if entry.value:
            return ResolutionResult(name, entry.value, Outcome.FOUND, from_cache=True)
        return ResolutionResult(name, None, Outcome.NOT_FOUND, from_cache=True)

    def search_url(self, name: str) -> str:
        query = urllib.parse.urlencode({"search": name, "exact": 1})
        return f"{self.base_url}/projects/?{query}"

    def project_url(self, name: str) -> str:
        return f"{self.base_url}/project/{urllib.parse.quote(name.lower(), safe='')}"

    def _request(self, url: str) -> str:
        self.rate_limiter.wait()
        try:
            return self.client.fetch(url)
        finally:
            self.rate_limiter.mark()

    def _lookup(self, name: str) -> Optional[str]:
        body = self._request(self.search_url(name))
        if not body:
            logger.warning(
                "Lookup for '%s' returned no data; recording it as not found for %d hours.",
                name,
                int(self.ttl // 3600),
            )
            return None
        target = extract_target_name(body, self.primary_repo, self.community_repo)
        if target is None and self.project_fallback and is_empty_project_set(body):
            logger.debug("No exact-name project for '%s'; fetching project by identifier.", name)
            body = self._request(self.project_url(name))
            target = extract_target_name(body, self.primary_repo, self.community_repo)
        return target

    def resolve(self, name: str) -> ResolutionResult:
        """Resolve one package name to Found or NotFound."""
        if not name:
            raise ValueError("package name must be non-empty")

        cached = self.lookup_cached(name)
        if cached.outcome is not Outcome.MISS:
            logger.debug("Cache hit for '%s'.", name)
            return cached

        logger.debug("Querying lookup service for '%s'...", name)
        target = self._lookup(name)
        self._write_cache(name, cache_key(name), target)

        if is_debug_enabled(logger):
            logger.debug(
                "Resolved package",
                extra=extra_context(
                    event="resolve",
                    component="resolver",
                    action="lookup",
                    target=name,
                    outcome="found" if target else "not_found",
                ),
            )
        if target:
            logger.debug("Mapped '%s' -> '%s'. Caching.", name, target)
            return ResolutionResult(name, target, Outcome.FOUND)
        logger.debug("No %s package found for '%s'. Caching as not found.",
                     self.primary_repo, name)
        return ResolutionResult(name, None, Outcome.NOT_FOUND)

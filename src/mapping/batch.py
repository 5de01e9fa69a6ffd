"""Batch driver: resolve an ordered package list into a mapping report."""

from __future__ import annotations

import logging
import time
from typing import Callable, List, Optional, Protocol, Sequence

from mapping.models import MappingReport, Outcome, ProgressEvent, ResolutionResult
from mapping.resolver import PackageResolver

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ProgressEvent], None]


class CancellationSignal(Protocol):
    """Anything with ``is_set()``, e.g. threading.Event."""

    def is_set(self) -> bool:
        ...


class BatchDriver:
    """Sequentially resolve packages, honoring a cap and cooperative cancellation."""

    def __init__(
        self,
        resolver: PackageResolver,
        progress_callback: Optional[ProgressCallback] = None,
        cancel_event: Optional[CancellationSignal] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.resolver = resolver
        self.progress_callback = progress_callback
        self.cancel_event = cancel_event
        self._clock = clock

    @staticmethod
    def select(packages: Sequence[str], max_packages: int = 0) -> List[str]:
        """Leading slice of packages honoring the cap (0 means unlimited)."""
        if max_packages and max_packages > 0:
            return list(packages[:max_packages])
        return list(packages)

    def estimate_seconds(self, packages: Sequence[str]) -> float:
        """Lower bound on network time: uncached packages times the rate interval."""
        uncached = sum(
            1 for name in packages
            if self.resolver.lookup_cached(name).outcome is Outcome.MISS
        )
        return uncached * self.resolver.rate_limiter.min_interval

    def _cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()

    def _emit(self, event: ProgressEvent) -> None:
        if self.progress_callback is None:
            return
        self.progress_callback(event)

    def run(self, packages: Sequence[str], max_packages: int = 0) -> MappingReport:
        """Resolve packages in input order and return the mapping report.

        Raises:
            CacheUnavailableError: If the cache cannot be prepared.
        """
        self.resolver.ensure_ready()

        selected = self.select(packages, max_packages)
        total = len(selected)
        if total < len(packages):
            logger.info("Limiting mapping to first %d packages.", total)
        if not total:
            logger.info("No packages to map.")
            return MappingReport()

        estimate = self.estimate_seconds(selected)
        logger.info(
            "Found %d packages to map. Estimated time for uncached packages: ~%d minutes. "
            "Cached packages are instant.",
            total,
            int(estimate // 60),
        )

        started = self._clock()
        results: List[ResolutionResult] = []
        cancelled = False
        for index, name in enumerate(selected, start=1):
            if self._cancelled():
                logger.warning(
                    "Mapping cancelled after %d of %d packages; cached results are kept.",
                    len(results),
                    total,
                )
                cancelled = True
                break
            result = self.resolver.resolve(name)
            results.append(result)
            self._emit(ProgressEvent(index=index, total=total, package=name, result=result))

        report = MappingReport(results=tuple(results), cancelled=cancelled)
        elapsed = self._clock() - started
        logger.info(
            "Package mapping completed in %.1f seconds (~%d minutes).",
            elapsed,
            int(elapsed // 60),
        )
        logger.info(
            "Package mapping complete. Mapped: %d, Not Found: %d.",
            report.found,
            report.not_found,
        )
        return report


def map_packages(
    packages: Sequence[str],
    resolver: PackageResolver,
    max_packages: int = 0,
    progress_callback: Optional[ProgressCallback] = None,
    cancel_event: Optional[CancellationSignal] = None,
) -> MappingReport:
    """Convenience wrapper around BatchDriver.run."""
    driver = BatchDriver(resolver, progress_callback=progress_callback, cancel_event=cancel_event)
    return driver.run(packages, max_packages=max_packages)

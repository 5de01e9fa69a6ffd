"""HTTP access to the package lookup service.

Encapsulates the retry/backoff policy and the request rate gate so the
resolver never deals with requests exceptions directly. Network failures are
never raised: after the last attempt the caller receives an empty body and
treats it as "unknown".
"""
from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, Optional

import requests

from constants import Constants, user_agent
from common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer

logger = logging.getLogger(__name__)


class RateLimiter:
    """Minimum-interval gate shared by every outbound lookup request.

    ``wait()`` blocks until ``min_interval`` seconds have passed since the
    last ``mark()``; ``mark()`` is called once a request has completed
    (successfully or with retries exhausted). Clock and sleep are injectable
    so tests can run on virtual time.
    """

    def __init__(
        self,
        min_interval: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.min_interval = float(min_interval)
        self._clock = clock
        self._sleep = sleep
        self._last_completed: Optional[float] = None

    def wait(self) -> float:
        """Sleep as needed before the next request; return seconds slept."""
        if self._last_completed is None:
            return 0.0
        remaining = self._last_completed + self.min_interval - self._clock()
        if remaining <= 0:
            return 0.0
        self._sleep(remaining)
        return remaining

    def mark(self) -> None:
        """Record completion of a request."""
        self._last_completed = self._clock()


class LookupHttpClient:
    """GET client with bounded retries and exponential backoff."""

    def __init__(
        self,
        *,
        retries: Optional[int] = None,
        base_delay: Optional[float] = None,
        connect_timeout: Optional[float] = None,
        read_timeout: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.retries = max(1, int(retries if retries is not None else Constants.HTTP_RETRY_MAX))
        self.base_delay = float(
            base_delay if base_delay is not None else Constants.HTTP_RETRY_BASE_DELAY_SEC
        )
        self.timeout = (
            connect_timeout if connect_timeout is not None else Constants.CONNECT_TIMEOUT,
            read_timeout if read_timeout is not None else Constants.REQUEST_TIMEOUT,
        )
        self._sleep = sleep
        self.headers = {"User-Agent": user_agent(), "Accept": "application/json"}
        if headers:
            self.headers.update(headers)

    def fetch(self, url: str, params: Optional[Dict[str, Any]] = None) -> str:
        """Return the response body, or "" once every attempt has failed."""
        safe_target = safe_url(url)
        delay = self.base_delay
        last_failure = None

        for attempt in range(1, self.retries + 1):
            with Timer() as t:
                if is_debug_enabled(logger):
                    logger.debug(
                        "HTTP request",
                        extra=extra_context(
                            event="http_request",
                            component="http_client",
                            action="GET",
                            target=safe_target,
                            attempt=attempt,
                        ),
                    )
                try:
                    response = requests.get(
                        url, params=params, headers=self.headers, timeout=self.timeout
                    )
                except requests.Timeout:
                    last_failure = "timeout"
                except requests.RequestException as exc:  # includes ConnectionError
                    last_failure = f"connection error: {exc}"
                else:
                    if 200 <= response.status_code < 300:
                        if is_debug_enabled(logger):
                            logger.debug(
                                "HTTP response ok",
                                extra=extra_context(
                                    event="http_response",
                                    component="http_client",
                                    action="GET",
                                    outcome="success",
                                    status_code=response.status_code,
                                    duration_ms=t.duration_ms(),
                                    target=safe_target,
                                    attempt=attempt,
                                ),
                            )
                        return response.text or ""
                    last_failure = f"HTTP {response.status_code}"

            if attempt < self.retries:
                logger.debug(
                    "Lookup %s failed (%s). Retrying in %ss...", safe_target, last_failure, delay
                )
                self._sleep(delay)
                delay *= 2

        logger.warning(
            "Lookup %s failed after %d attempts: %s", safe_target, self.retries, last_failure
        )
        return ""

    def check_connectivity(self, url: Optional[str] = None, timeout: Optional[float] = None) -> bool:
        """Single-attempt reachability probe of the lookup service."""
        target = url or Constants.LOOKUP_SERVICE_ROOT
        try:
            requests.get(
                target,
                headers=self.headers,
                timeout=timeout if timeout is not None else Constants.PREFLIGHT_TIMEOUT,
            )
        except requests.RequestException as exc:
            logger.debug("Connectivity probe to %s failed: %s", safe_url(target), exc)
            return False
        return True

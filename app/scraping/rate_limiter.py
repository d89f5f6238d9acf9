"""
Per-host politeness delay enforcement.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from urllib.parse import urlparse


class DomainRateLimiter:
    """
    Enforces a minimum delay between consecutive requests to the same host.
    """

    def __init__(
        self,
        *,
        default_delay_ms: int = 1000,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._default_delay_ms = max(0, default_delay_ms)
        self._sleep = sleep
        self._last_request_by_domain: dict[str, float] = {}
        self._lock = threading.Lock()

    def wait(self, *, url: str, delay_ms: int | None = None) -> float:
        """
        Sleep as needed so requests to one host stay `delay_ms` apart.

        Returns the number of seconds slept.
        """

        parsed = urlparse(url)
        domain = parsed.netloc.lower() or parsed.path.lower()
        if not domain:
            return 0.0

        min_interval = max(0, self._default_delay_ms if delay_ms is None else delay_ms) / 1000.0

        with self._lock:
            last_time = self._last_request_by_domain.get(domain)
            wait_seconds = 0.0
            if last_time is not None:
                wait_seconds = min_interval - (time.monotonic() - last_time)
            if wait_seconds > 0:
                self._sleep(wait_seconds)
            else:
                wait_seconds = 0.0
            self._last_request_by_domain[domain] = time.monotonic()
        return wait_seconds

from __future__ import annotations

import logging

from rategate.domain.models import Policy, QuotaState
from rategate.domain.validators import require_key, require_positive_int

from .clock import Clock, SystemClock
from .request_log_store import RequestLogStore


class SlidingWindowRateLimiter:
    """
    Per-key sliding-window rate limiter.

    A timestamp counts while it is strictly newer than `now - window_ms`.
    Every call prunes the queried key; only a successful admission appends.
    """

    def __init__(self, *, store: RequestLogStore | None = None, clock: Clock | None = None) -> None:
        self._store = store if store is not None else RequestLogStore()
        self._clock = clock if clock is not None else SystemClock()
        self._logger = logging.getLogger("rate_limiter")

    @property
    def store(self) -> RequestLogStore:
        return self._store

    def is_allowed(self, key: str, limit: int, window_ms: int) -> bool:
        require_key(key)
        require_positive_int("limit", limit)
        require_positive_int("window_ms", window_ms)

        with self._store.locked():
            now = self._clock.monotonic_ms()
            log = self._store.get_or_create(key)
            self._store.prune(key, now - window_ms)

            if len(log) >= limit:
                self._logger.debug("deny %s (%d/%d)", key, len(log), limit)
                return False

            self._store.append(key, now)
            return True

    def check(self, key: str, policy: Policy) -> bool:
        return self.is_allowed(key, policy.limit, policy.window_ms)

    def get_remaining_requests(self, key: str, limit: int, window_ms: int) -> int:
        require_key(key)
        require_positive_int("limit", limit)
        require_positive_int("window_ms", window_ms)

        with self._store.locked():
            return max(0, limit - self._counted(key, window_ms))

    def get_reset_time(self, key: str, window_ms: int) -> int:
        require_key(key)
        require_positive_int("window_ms", window_ms)

        with self._store.locked():
            return self._reset_time(key, window_ms)

    def quota(self, key: str, policy: Policy) -> QuotaState:
        """Remaining quota and reset time read under one lock acquisition."""
        require_key(key)
        with self._store.locked():
            remaining = max(0, policy.limit - self._counted(key, policy.window_ms))
            reset_time_ms = self._reset_time(key, policy.window_ms)
        return QuotaState(limit=policy.limit, remaining=remaining, reset_time_ms=reset_time_ms)

    def reset(self, key: str) -> None:
        require_key(key)
        self._store.delete(key)

    def reset_all(self) -> None:
        self._store.clear()
        self._logger.info("all rate limit logs discarded")

    def _counted(self, key: str, window_ms: int) -> int:
        log = self._store.prune(key, self._clock.monotonic_ms() - window_ms)
        return len(log) if log is not None else 0

    def _reset_time(self, key: str, window_ms: int) -> int:
        now = self._clock.monotonic_ms()
        log = self._store.prune(key, now - window_ms)
        if not log:
            return 0
        return max(0, log[0] + window_ms - now)

from __future__ import annotations

import logging
import threading
from collections import Counter
from datetime import timedelta

from rategate.constants import MSG_RATE_LIMITED
from rategate.domain.errors import DomainError
from rategate.domain.models import Action
from rategate.domain.policies import PolicyTable, parse_action, storage_key
from rategate.infrastructure.clock import Clock
from rategate.infrastructure.rate_limiter import SlidingWindowRateLimiter

from .dto import (
    ActionCountersDTO,
    AdmissionResultDTO,
    RateLimitInfoDTO,
    RateLimitStatsDTO,
    ResetResultDTO,
)


TOP_SUBJECTS: int = 10
# denied-key counter is trimmed back to its top entries past this size
MAX_DENIED_KEYS: int = 1000


class RateLimitService:
    """
    Entry point for calling code: resolves the named policy, builds the
    action-qualified key and runs the limiter.

    No method raises for bad input. Failures come back as result DTOs that
    carry the error kind; `check` answers them with allowed=False, so callers
    fail closed.
    """

    def __init__(
        self,
        *,
        limiter: SlidingWindowRateLimiter,
        policies: PolicyTable,
        clock: Clock,
    ) -> None:
        self._limiter = limiter
        self._policies = policies
        self._clock = clock
        self._allowed: Counter[Action] = Counter()
        self._denied: Counter[Action] = Counter()
        self._denied_keys: Counter[str] = Counter()
        self._counters_lock = threading.Lock()
        self._logger = logging.getLogger("rate_limit_service")

    @property
    def policies(self) -> PolicyTable:
        return self._policies

    def check(self, action: Action | str, subject: str) -> AdmissionResultDTO:
        try:
            resolved = parse_action(action)
            policy = self._policies.get(resolved)
            key = storage_key(resolved, subject)
            with self._limiter.store.locked():
                allowed = self._limiter.check(key, policy)
                quota = self._limiter.quota(key, policy)
        except DomainError as exc:
            self._logger.warning("rate limit check rejected: %s", exc)
            return AdmissionResultDTO(
                allowed=False,
                action=None,
                key=None,
                remaining=0,
                reset_time_ms=0,
                error=exc.kind,
                message=str(exc),
            )

        self._count(resolved, key, allowed)

        if not allowed:
            self._logger.info(
                "rate limited: action=%s subject=%s retry_in_ms=%d",
                resolved.value,
                subject,
                quota.reset_time_ms,
            )

        return AdmissionResultDTO(
            allowed=allowed,
            action=resolved,
            key=key,
            remaining=quota.remaining,
            reset_time_ms=quota.reset_time_ms,
            message="" if allowed else MSG_RATE_LIMITED,
        )

    def info(self, subject: str, action: Action | str) -> RateLimitInfoDTO:
        try:
            resolved = parse_action(action)
            policy = self._policies.get(resolved)
            quota = self._limiter.quota(storage_key(resolved, subject), policy)
        except DomainError as exc:
            return RateLimitInfoDTO(
                limit=0,
                remaining=0,
                reset_time_ms=0,
                reset_at=None,
                error=exc.kind,
                message=str(exc),
            )

        return RateLimitInfoDTO(
            limit=quota.limit,
            remaining=quota.remaining,
            reset_time_ms=quota.reset_time_ms,
            reset_at=self._clock.utcnow() + timedelta(milliseconds=quota.reset_time_ms),
        )

    def reset(self, action: Action | str, subject: str) -> ResetResultDTO:
        try:
            self._limiter.reset(storage_key(parse_action(action), subject))
        except DomainError as exc:
            return ResetResultDTO(reset=False, error=exc.kind, message=str(exc))
        return ResetResultDTO(reset=True)

    def reset_subject(self, subject: str) -> ResetResultDTO:
        try:
            keys = [storage_key(action, subject) for action in self._policies]
        except DomainError as exc:
            return ResetResultDTO(reset=False, error=exc.kind, message=str(exc))
        for key in keys:
            self._limiter.reset(key)
        return ResetResultDTO(reset=True)

    def reset_all(self) -> None:
        self._limiter.reset_all()

    def stats(self) -> RateLimitStatsDTO:
        store = self._limiter.store
        with self._counters_lock:
            per_action = {
                action: ActionCountersDTO(allowed=self._allowed[action], denied=self._denied[action])
                for action in self._policies
            }
            top = self._denied_keys.most_common(TOP_SUBJECTS)

        total = sum(c.allowed + c.denied for c in per_action.values())
        blocked = sum(c.denied for c in per_action.values())
        return RateLimitStatsDTO(
            tracked_keys=len(store),
            tracked_timestamps=store.total_timestamps(),
            per_action=per_action,
            blocked_ratio=blocked / total if total else 0.0,
            top_subjects=top,
        )

    def _count(self, action: Action, key: str, allowed: bool) -> None:
        with self._counters_lock:
            if allowed:
                self._allowed[action] += 1
                return
            self._denied[action] += 1
            self._denied_keys[key] += 1
            if len(self._denied_keys) > MAX_DENIED_KEYS:
                self._denied_keys = Counter(dict(self._denied_keys.most_common(TOP_SUBJECTS)))

"""
Shared pytest fixtures for rategate tests.

Provides:
- ManualClock starting at t=0 ms (wall clock 2024-01-01T00:00:00Z)
- RequestLogStore / SlidingWindowRateLimiter wired to that clock
- RateLimitService over the default policy table
- AppSettings that ignore any local .env file
"""

from __future__ import annotations

import pytest

from rategate.application.services import RateLimitService
from rategate.config import AppSettings
from rategate.domain.policies import PolicyTable
from rategate.infrastructure.clock import ManualClock
from rategate.infrastructure.rate_limiter import SlidingWindowRateLimiter
from rategate.infrastructure.request_log_store import RequestLogStore


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(start_ms=0)


@pytest.fixture
def store() -> RequestLogStore:
    return RequestLogStore()


@pytest.fixture
def limiter(store: RequestLogStore, clock: ManualClock) -> SlidingWindowRateLimiter:
    return SlidingWindowRateLimiter(store=store, clock=clock)


@pytest.fixture
def policies() -> PolicyTable:
    return PolicyTable()


@pytest.fixture
def service(limiter: SlidingWindowRateLimiter, policies: PolicyTable, clock: ManualClock) -> RateLimitService:
    return RateLimitService(limiter=limiter, policies=policies, clock=clock)


@pytest.fixture
def settings() -> AppSettings:
    return AppSettings(_env_file=None)

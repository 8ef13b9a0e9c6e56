from __future__ import annotations

from .clock import Clock, ManualClock, SystemClock
from .rate_limiter import SlidingWindowRateLimiter
from .request_log_store import RequestLogStore
from .sweeper import EvictionSweeper, SweepReport

__all__ = [
    "Clock",
    "ManualClock",
    "SystemClock",
    "RequestLogStore",
    "SlidingWindowRateLimiter",
    "EvictionSweeper",
    "SweepReport",
]

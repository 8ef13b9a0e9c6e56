from __future__ import annotations

import time
from datetime import datetime, timedelta, timezone
from typing import Protocol

from rategate.domain.errors import InvalidArgumentError


class Clock(Protocol):
    def monotonic_ms(self) -> int: ...
    def utcnow(self) -> datetime: ...


class SystemClock:
    def monotonic_ms(self) -> int:
        return time.monotonic_ns() // 1_000_000

    def utcnow(self) -> datetime:
        return datetime.now(timezone.utc)


class ManualClock:
    """
    Deterministic clock driven by the caller.
    Wall time moves in lockstep with monotonic time.
    """

    def __init__(self, start_ms: int = 0, *, wall_start: datetime | None = None) -> None:
        self._now = start_ms
        self._start = start_ms
        self._wall_start = wall_start or datetime(2024, 1, 1, tzinfo=timezone.utc)

    def monotonic_ms(self) -> int:
        return self._now

    def utcnow(self) -> datetime:
        return self._wall_start + timedelta(milliseconds=self._now - self._start)

    def advance(self, ms: int) -> None:
        if ms < 0:
            raise InvalidArgumentError(f"ManualClock cannot move backwards ({ms} ms)")
        self._now += ms

    def set(self, ms: int) -> None:
        if ms < self._now:
            raise InvalidArgumentError(f"ManualClock cannot move backwards ({self._now} -> {ms})")
        self._now = ms

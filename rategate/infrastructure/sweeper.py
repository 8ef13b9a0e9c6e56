from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from .clock import Clock
from .request_log_store import RequestLogStore


DEFAULT_SWEEP_INTERVAL_SEC: int = 60 * 60
DEFAULT_MAX_AGE_MS: int = 24 * 60 * 60 * 1000


@dataclass(frozen=True, slots=True)
class SweepReport:
    scanned: int
    evicted: int
    dropped_timestamps: int
    duration_ms: int


class EvictionSweeper:
    """
    Periodic garbage collector for the request log store.

    Never admits or denies. Drops timestamps older than `max_age_ms` and
    deletes keys left empty. The store lock is held one batch at a time.
    """

    def __init__(
        self,
        *,
        store: RequestLogStore,
        clock: Clock,
        interval_sec: float = DEFAULT_SWEEP_INTERVAL_SEC,
        max_age_ms: int = DEFAULT_MAX_AGE_MS,
        batch_size: int = 500,
    ) -> None:
        if interval_sec <= 0:
            raise ValueError(f"interval_sec must be > 0, got {interval_sec}")
        if max_age_ms <= 0:
            raise ValueError(f"max_age_ms must be > 0, got {max_age_ms}")
        if batch_size <= 0:
            raise ValueError(f"batch_size must be > 0, got {batch_size}")

        self._store = store
        self._clock = clock
        self._interval = interval_sec
        self._max_age_ms = max_age_ms
        self._batch_size = batch_size
        self._task: asyncio.Task[None] | None = None
        self._logger = logging.getLogger("eviction_sweeper")

    @property
    def max_age_ms(self) -> int:
        return self._max_age_ms

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="eviction-sweeper")

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)

    async def sweep_once(self) -> SweepReport:
        started = self._clock.monotonic_ms()
        keys = self._store.keys()
        evicted = 0
        dropped = 0

        for i in range(0, len(keys), self._batch_size):
            batch = keys[i : i + self._batch_size]
            with self._store.locked():
                cutoff = self._clock.monotonic_ms() - self._max_age_ms
                for key in batch:
                    log = self._store.get(key)
                    if log is None:
                        continue
                    before = len(log)
                    self._store.prune(key, cutoff)
                    dropped += before - len(log)
                    if self._store.delete_if_empty(key):
                        evicted += 1
            await asyncio.sleep(0)

        report = SweepReport(
            scanned=len(keys),
            evicted=evicted,
            dropped_timestamps=dropped,
            duration_ms=self._clock.monotonic_ms() - started,
        )
        self._logger.info(
            "sweep: scanned=%d evicted=%d dropped=%d",
            report.scanned,
            report.evicted,
            report.dropped_timestamps,
        )
        return report

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                await self.sweep_once()
            except asyncio.CancelledError:
                raise
            except Exception:
                self._logger.exception("sweep failed")

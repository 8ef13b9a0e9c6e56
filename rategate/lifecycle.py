from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .di import AsyncStartStop, Container
from .di import build_graph as build_di_graph
from .domain.policies import PolicyTable
from .infrastructure.sweeper import EvictionSweeper


class LifecycleError(RuntimeError):
    pass


@dataclass(slots=True)
class AppLifecycle:
    container: Container
    _started: bool = field(default=False, init=False)
    _built: bool = field(default=False, init=False)
    _started_components: list[tuple[str, AsyncStartStop]] = field(default_factory=list, init=False)
    _logger: logging.Logger = field(default_factory=lambda: logging.getLogger("lifecycle"), init=False)

    def build(self) -> None:
        """Build the DI graph (idempotent). Crashes on any wiring error."""
        if self._built:
            return
        build_di_graph(self.container)
        self._built = True
        self._preflight()

    async def startup(self) -> None:
        if self._started:
            raise LifecycleError("startup() called twice")

        self._logger.info("startup: begin")
        self.build()
        await self._start_components()
        self._started = True
        self._logger.info("startup: done")

    async def shutdown(self) -> None:
        if not self._started:
            self._logger.info("shutdown: skipped (not started)")
            return

        self._logger.info("shutdown: begin")
        await self._stop_components()
        self._started = False
        self._logger.info("shutdown: done")

    def _preflight(self) -> None:
        policies: PolicyTable = self.container.get("policy_table")
        sweeper: EvictionSweeper = self.container.get("eviction_sweeper")
        # sweeper must never drop timestamps a policy window still counts
        if sweeper.max_age_ms <= policies.max_window_ms:
            raise LifecycleError(
                f"SWEEP_MAX_AGE ({sweeper.max_age_ms} ms) must exceed the largest "
                f"policy window ({policies.max_window_ms} ms)"
            )

    async def _start_components(self) -> None:
        startable = [(n, c) for n, c in self.container.all_components() if isinstance(c, AsyncStartStop)]
        for name, component in startable:
            self._logger.info("starting %s", name)
            try:
                await component.start()
            except Exception as exc:
                # leave nothing half-running behind a failed startup
                await self._stop_components()
                raise LifecycleError(f"{name} failed to start") from exc
            self._started_components.append((name, component))

    async def _stop_components(self) -> None:
        while self._started_components:
            name, component = self._started_components.pop()
            self._logger.info("stopping %s", name)
            try:
                await component.stop()
            except Exception:
                self._logger.exception("%s failed to stop", name)

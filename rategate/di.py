from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from .application.services import RateLimitService
from .config import AppSettings, get_settings
from .constants import APP_NAME
from .infrastructure.clock import Clock, SystemClock
from .infrastructure.rate_limiter import SlidingWindowRateLimiter
from .infrastructure.request_log_store import RequestLogStore
from .infrastructure.sweeper import EvictionSweeper


class DIError(RuntimeError):
    pass


@runtime_checkable
class AsyncStartStop(Protocol):
    async def start(self) -> None: ...
    async def stop(self) -> None: ...


@dataclass(slots=True)
class Container:
    settings: AppSettings
    clock: Clock
    logger: logging.Logger
    _components: dict[str, Any]

    @classmethod
    def build(cls, settings: AppSettings | None = None, *, clock: Clock | None = None) -> "Container":
        return cls(
            settings=settings if settings is not None else get_settings(),
            clock=clock if clock is not None else SystemClock(),
            logger=logging.getLogger(APP_NAME),
            _components={},
        )

    def register(self, name: str, component: Any) -> None:
        if not name or not name.strip():
            raise DIError("Component name must be non-empty")
        if name in self._components:
            raise DIError(f"Component already registered: {name}")
        self._components[name] = component

    def get(self, name: str) -> Any:
        try:
            return self._components[name]
        except KeyError as exc:
            raise DIError(f"Unknown component: {name}") from exc

    def all_components(self) -> list[tuple[str, Any]]:
        return list(self._components.items())


def build_graph(container: Container) -> None:
    """
    Build the whole dependency graph: one limiter per process.
    Any init error must crash at startup.
    """

    s = container.settings

    policies = s.build_policy_table()
    store = RequestLogStore(max_keys=s.max_tracked_keys)
    limiter = SlidingWindowRateLimiter(store=store, clock=container.clock)
    sweeper = EvictionSweeper(
        store=store,
        clock=container.clock,
        interval_sec=s.sweep_interval_sec,
        max_age_ms=s.sweep_max_age_ms,
        batch_size=s.sweep_batch_size,
    )
    service = RateLimitService(limiter=limiter, policies=policies, clock=container.clock)

    container.register("policy_table", policies)
    container.register("request_log_store", store)
    container.register("rate_limiter", limiter)
    container.register("eviction_sweeper", sweeper)
    container.register("rate_limit_service", service)

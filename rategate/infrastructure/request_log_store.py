from __future__ import annotations

import logging
import threading
from collections import OrderedDict, deque
from contextlib import contextmanager
from typing import Deque, Iterator


class RequestLogStore:
    """
    Per-key ordered request timestamps (milliseconds).

    Responsibility:
      - hold one deque per key, oldest timestamp on the left
      - serialize access through a single re-entrant lock
      - optionally bound the number of keys (least recently admitted goes first)

    Callers doing read-modify-write must hold `locked()` for the whole sequence.
    """

    def __init__(self, *, max_keys: int | None = None) -> None:
        if max_keys is not None and max_keys <= 0:
            raise ValueError(f"max_keys must be > 0, got {max_keys}")
        self._logs: OrderedDict[str, Deque[int]] = OrderedDict()
        self._lock = threading.RLock()
        self._max_keys = max_keys
        self._logger = logging.getLogger("request_log_store")

    @contextmanager
    def locked(self) -> Iterator[None]:
        with self._lock:
            yield

    def get(self, key: str) -> Deque[int] | None:
        with self._lock:
            return self._logs.get(key)

    def get_or_create(self, key: str) -> Deque[int]:
        with self._lock:
            log = self._logs.get(key)
            if log is None:
                self._make_room()
                log = deque()
                self._logs[key] = log
            else:
                # recency tracks every access, admitted or denied
                self._logs.move_to_end(key)
            return log

    def append(self, key: str, timestamp_ms: int) -> None:
        with self._lock:
            self.get_or_create(key).append(timestamp_ms)

    def prune(self, key: str, window_start_ms: int) -> Deque[int] | None:
        """Drop timestamps <= window_start_ms. Never creates an entry."""
        with self._lock:
            log = self._logs.get(key)
            if log is None:
                return None
            while log and log[0] <= window_start_ms:
                log.popleft()
            return log

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._logs.pop(key, None) is not None

    def delete_if_empty(self, key: str) -> bool:
        with self._lock:
            log = self._logs.get(key)
            if log is not None and not log:
                del self._logs[key]
                return True
            return False

    def clear(self) -> None:
        with self._lock:
            self._logs.clear()

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._logs.keys())

    def total_timestamps(self) -> int:
        with self._lock:
            return sum(len(log) for log in self._logs.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._logs)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._logs

    def _make_room(self) -> None:
        if self._max_keys is None:
            return
        while len(self._logs) >= self._max_keys:
            evicted, _ = self._logs.popitem(last=False)
            self._logger.warning("key bound reached (%d), evicted: %s", self._max_keys, evicted)

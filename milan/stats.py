"""Process-lifetime request counters."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass


@dataclass(frozen=True)
class StatsSnapshot:
    started_at: float
    uptime_seconds: int
    requests: int
    scripts_run: int


class ServerStats:
    """
    Counters shared by every request handler.

    Created once per app and handed around explicitly; increments are
    serialized with a lock so concurrent requests never lose an update.
    """

    def __init__(self) -> None:
        self.started_at = time.time()
        self._started_monotonic = time.monotonic()
        self._lock = threading.Lock()
        self._requests = 0
        self._scripts_run = 0

    def record_request(self) -> int:
        with self._lock:
            self._requests += 1
            return self._requests

    def record_script_run(self) -> int:
        with self._lock:
            self._scripts_run += 1
            return self._scripts_run

    def snapshot(self) -> StatsSnapshot:
        with self._lock:
            return StatsSnapshot(
                started_at=self.started_at,
                uptime_seconds=round(time.monotonic() - self._started_monotonic),
                requests=self._requests,
                scripts_run=self._scripts_run,
            )

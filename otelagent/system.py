"""System-level metrics such as connection counts and uptime."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from datetime import timedelta
from typing import Any


class SystemCollector:
    """Creates system gauges and records application uptime every interval.

    ``clock`` returns monotonic seconds; uptime is measured from construction
    and again from the start of each ``collect`` run.
    """

    def __init__(
        self,
        meter: Any,
        interval: timedelta,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.interval = interval
        self._clock = clock
        self._started = clock()

        self.db_connections = meter.create_gauge(
            "database_connections_active",
            description="Current active database connections",
        )
        self.redis_connections = meter.create_gauge(
            "redis_connections_active",
            description="Current active Redis connections",
        )
        self.http_connections = meter.create_gauge(
            "http_connections_active",
            description="Current active HTTP connections",
        )
        self.queue_depth = meter.create_gauge(
            "queue_depth", description="Current queue depth"
        )
        self.queue_rate = meter.create_gauge(
            "queue_processing_rate",
            unit="1/s",
            description="Current queue processing rate",
        )
        self.health_score = meter.create_gauge(
            "health_score", description="Current health score (0-1)"
        )
        self.uptime = meter.create_gauge(
            "uptime_seconds", unit="s", description="Application uptime in seconds"
        )

    def record(self) -> None:
        """Record the whole seconds elapsed since the start time."""
        self.uptime.set(int(self._clock() - self._started))

    def collect(self, stop: threading.Event) -> None:
        """Record uptime every interval until ``stop`` is set."""
        seconds = self.interval.total_seconds()
        if seconds <= 0:
            raise ValueError("non-positive interval for system collector")
        self._started = self._clock()
        while not stop.wait(seconds):
            self.record()
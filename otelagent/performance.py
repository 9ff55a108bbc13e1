"""Performance metrics such as latency percentiles and throughput."""

from __future__ import annotations

import threading
from datetime import timedelta
from typing import Any


class PerformanceCollector:
    """Creates performance gauges; they are populated by request handlers."""

    def __init__(self, meter: Any, interval: timedelta) -> None:
        self.interval = interval
        self.p50_latency = meter.create_gauge(
            "latency_p50_seconds", unit="s", description="50th percentile latency"
        )
        self.p90_latency = meter.create_gauge(
            "latency_p90_seconds", unit="s", description="90th percentile latency"
        )
        self.p95_latency = meter.create_gauge(
            "latency_p95_seconds", unit="s", description="95th percentile latency"
        )
        self.p99_latency = meter.create_gauge(
            "latency_p99_seconds", unit="s", description="99th percentile latency"
        )
        self.requests_per_second = meter.create_gauge(
            "requests_per_second", unit="1/s", description="Current requests per second"
        )
        self.messages_per_second = meter.create_gauge(
            "messages_per_second", unit="1/s", description="Current messages per second"
        )
        self.cpu_utilization = meter.create_gauge(
            "cpu_utilization_percent",
            unit="%",
            description="Current CPU utilization percentage",
        )
        self.memory_utilization = meter.create_gauge(
            "memory_utilization_percent",
            unit="%",
            description="Current memory utilization percentage",
        )
        self.cache_hit_rate = meter.create_gauge(
            "cache_hit_rate_percent",
            unit="%",
            description="Current cache hit rate percentage",
        )
        self.cache_miss_rate = meter.create_gauge(
            "cache_miss_rate_percent",
            unit="%",
            description="Current cache miss rate percentage",
        )

    def collect(self, stop: threading.Event) -> None:
        """Tick every interval until ``stop`` is set."""
        seconds = self.interval.total_seconds()
        if seconds <= 0:
            raise ValueError("non-positive interval for performance collector")
        while not stop.wait(seconds):
            pass
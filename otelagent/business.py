"""Application-level business metrics."""

from __future__ import annotations

import threading
from datetime import timedelta
from typing import Any


class BusinessCollector:
    """Creates business instruments and keeps a registry of custom ones.

    ``meter`` is any object with ``create_counter``, ``create_gauge`` and
    ``create_histogram`` methods taking ``name``, ``unit`` and ``description``.
    The built-in instruments are populated by application code.
    """

    def __init__(self, meter: Any, interval: timedelta) -> None:
        self.meter = meter
        self.interval = interval
        self._lock = threading.Lock()
        self._custom_counters: dict[str, Any] = {}
        self._custom_gauges: dict[str, Any] = {}
        self._custom_histograms: dict[str, Any] = {}

        self.active_users = meter.create_gauge(
            "active_users", description="Current number of active users"
        )
        self.request_rate = meter.create_gauge(
            "request_rate", unit="1/s", description="Current request rate per second"
        )
        self.error_rate = meter.create_gauge(
            "error_rate", unit="%", description="Current error rate percentage"
        )
        self.response_time = meter.create_histogram(
            "response_time_seconds", unit="s", description="Response time distribution"
        )
        self.feature_usage = meter.create_counter(
            "feature_usage_total", description="Total feature usage count"
        )
        self.conversion_rate = meter.create_gauge(
            "conversion_rate", unit="%", description="Current conversion rate percentage"
        )
        self.retention_rate = meter.create_gauge(
            "retention_rate", unit="%", description="Current retention rate percentage"
        )

    def record_feature_usage(self, feature: str) -> None:
        """Count one use of ``feature``."""
        self.feature_usage.add(1, {"feature": feature})

    def create_custom_counter(self, name: str, description: str) -> Any:
        """Return the custom counter called ``name``, creating it on first use."""
        with self._lock:
            if name not in self._custom_counters:
                self._custom_counters[name] = self.meter.create_counter(
                    name, description=description
                )
            return self._custom_counters[name]

    def create_custom_gauge(self, name: str, description: str) -> Any:
        """Return the custom gauge called ``name``, creating it on first use."""
        with self._lock:
            if name not in self._custom_gauges:
                self._custom_gauges[name] = self.meter.create_gauge(
                    name, description=description
                )
            return self._custom_gauges[name]

    def create_custom_histogram(self, name: str, description: str) -> Any:
        """Return the custom histogram called ``name``, creating it on first use."""
        with self._lock:
            if name not in self._custom_histograms:
                self._custom_histograms[name] = self.meter.create_histogram(
                    name, description=description
                )
            return self._custom_histograms[name]

    def collect(self, stop: threading.Event) -> None:
        """Tick every interval until ``stop`` is set."""
        seconds = self.interval.total_seconds()
        if seconds <= 0:
            raise ValueError("non-positive interval for business collector")
        while not stop.wait(seconds):
            pass
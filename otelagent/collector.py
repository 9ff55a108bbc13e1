"""Orchestration of the runtime, business, performance and system collectors."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import timedelta

from otelagent.business import BusinessCollector
from otelagent.performance import PerformanceCollector
from otelagent.runtime import RuntimeCollector
from otelagent.system import SystemCollector


@dataclass
class CollectorConfig:
    """Which sub-collectors run and how often."""

    runtime_enabled: bool = False
    business_enabled: bool = False
    performance_enabled: bool = False
    system_enabled: bool = False
    runtime_interval: timedelta = field(default_factory=timedelta)
    default_interval: timedelta = field(default_factory=timedelta)


class MetricCollector:
    """Runs each configured sub-collector in its own background thread."""

    def __init__(
        self,
        logger: logging.Logger | None = None,
        runtime: RuntimeCollector | None = None,
        business: BusinessCollector | None = None,
        performance: PerformanceCollector | None = None,
        system: SystemCollector | None = None,
    ) -> None:
        self.logger = logger or logging.getLogger(__name__)
        self.runtime = runtime
        self.business = business
        self.performance = performance
        self.system = system
        self._lock = threading.Lock()
        self._running = False
        self._stop_event = threading.Event()
        self._threads: list[threading.Thread] = []

    @property
    def running(self) -> bool:
        """Whether the sub-collectors have been started and not stopped."""
        with self._lock:
            return self._running

    def start(self) -> None:
        """Start every configured sub-collector.

        Raises RuntimeError if the collector is already running.
        """
        with self._lock:
            if self._running:
                raise RuntimeError("metric collector is already running")
            self._running = True
            self._stop_event = threading.Event()
            named = (
                ("runtime", self.runtime),
                ("business", self.business),
                ("performance", self.performance),
                ("system", self.system),
            )
            self._threads = [
                threading.Thread(
                    target=sub.collect,
                    args=(self._stop_event,),
                    name=f"otelagent-{name}-collector",
                    daemon=True,
                )
                for name, sub in named
                if sub is not None
            ]
            for thread in self._threads:
                thread.start()
        self.logger.info("Metric collector started")

    def stop(self) -> None:
        """Signal all sub-collectors to stop and wait for them; a no-op if not running."""
        with self._lock:
            if not self._running:
                return
            self._stop_event.set()
            threads, self._threads = self._threads, []
            self._running = False
        for thread in threads:
            thread.join()
        self.logger.info("Metric collector stopped")

    def __enter__(self) -> MetricCollector:
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()
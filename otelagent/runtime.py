"""Interpreter runtime metrics: memory, garbage collection and threads."""

from __future__ import annotations

import gc
import sys
import threading
import time
import tracemalloc
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

try:
    import resource as _resource
except ImportError:  # not available on Windows
    _resource = None


class _GCPauseTracker:
    """Accumulates the wall time spent in garbage collection, process-wide."""

    def __init__(self) -> None:
        self.total_ns = 0
        self._started: int | None = None
        self._installed = False
        self._lock = threading.Lock()

    def install(self) -> None:
        with self._lock:
            if not self._installed:
                gc.callbacks.append(self._callback)
                self._installed = True

    def _callback(self, phase: str, info: dict) -> None:
        if phase == "start":
            self._started = time.perf_counter_ns()
        elif phase == "stop" and self._started is not None:
            self.total_ns += time.perf_counter_ns() - self._started
            self._started = None


_pause_tracker = _GCPauseTracker()


@dataclass(frozen=True)
class _RuntimeStats:
    traced_bytes: int
    traced_peak_bytes: int
    max_rss_bytes: int
    allocated_blocks: int
    gc_pending_objects: int
    gc_collections: int
    gc_pause_total_ns: int
    threads: int
    gc_cpu_fraction: float


def _max_rss_bytes() -> int:
    if _resource is None:
        return 0
    rss = _resource.getrusage(_resource.RUSAGE_SELF).ru_maxrss
    return rss if sys.platform == "darwin" else rss * 1024


def _read_runtime_stats() -> _RuntimeStats:
    if tracemalloc.is_tracing():
        traced, peak = tracemalloc.get_traced_memory()
    else:
        traced, peak = 0, 0
    pause_ns = _pause_tracker.total_ns
    cpu_ns = time.process_time_ns()
    fraction = min(1.0, pause_ns / cpu_ns) if cpu_ns > 0 else 0.0
    return _RuntimeStats(
        traced_bytes=traced,
        traced_peak_bytes=peak,
        max_rss_bytes=_max_rss_bytes(),
        allocated_blocks=sys.getallocatedblocks(),
        gc_pending_objects=sum(gc.get_count()),
        gc_collections=sum(stat["collections"] for stat in gc.get_stats()),
        gc_pause_total_ns=pause_ns,
        threads=threading.active_count(),
        gc_cpu_fraction=fraction,
    )


class RuntimeCollector:
    """Records interpreter memory, GC and thread metrics every interval."""

    def __init__(self, meter: Any, interval: timedelta) -> None:
        self.interval = interval
        self._lock = threading.Lock()
        self._last_gc_collections = 0
        self._last_pause_total_ns = 0

        self.memory_traced = meter.create_gauge(
            "python_memory_traced_bytes",
            unit="By",
            description="Memory currently traced by tracemalloc in bytes",
        )
        self.memory_max_rss = meter.create_gauge(
            "process_max_rss_bytes",
            unit="By",
            description="Peak resident set size of the process in bytes",
        )
        self.memory_allocated_blocks = meter.create_gauge(
            "python_memory_allocated_blocks",
            description="Number of memory blocks currently allocated by the interpreter",
        )
        self.memory_traced_peak = meter.create_gauge(
            "python_memory_traced_peak_bytes",
            unit="By",
            description="Peak memory traced by tracemalloc in bytes",
        )
        self.gc_pending = meter.create_gauge(
            "python_gc_pending_objects",
            description="Allocations pending in the GC generations",
        )
        self.gc_collections = meter.create_counter(
            "python_gc_collections_total",
            description="Total number of GC collections",
        )
        self.gc_pause = meter.create_histogram(
            "python_gc_pause_seconds",
            unit="s",
            description="GC pause duration in seconds",
        )
        self.threads = meter.create_gauge(
            "python_threads", description="Current number of threads"
        )
        self.gc_cpu_fraction = meter.create_gauge(
            "python_gc_cpu_fraction",
            description="Fraction of CPU time used by GC",
        )
        _pause_tracker.install()

    def record(self) -> None:
        """Take one sample of the runtime statistics and record it."""
        with self._lock:
            stats = _read_runtime_stats()
            self.memory_traced.set(stats.traced_bytes)
            self.memory_max_rss.set(stats.max_rss_bytes)
            self.memory_allocated_blocks.set(stats.allocated_blocks)
            self.memory_traced_peak.set(stats.traced_peak_bytes)
            self.gc_pending.set(stats.gc_pending_objects)
            self.threads.set(stats.threads)
            self.gc_cpu_fraction.set(stats.gc_cpu_fraction)

            if stats.gc_collections > self._last_gc_collections:
                self.gc_collections.add(stats.gc_collections - self._last_gc_collections)
                self._last_gc_collections = stats.gc_collections

            if stats.gc_pause_total_ns > self._last_pause_total_ns:
                pause_ns = stats.gc_pause_total_ns - self._last_pause_total_ns
                self.gc_pause.record(pause_ns / 1e9)
                self._last_pause_total_ns = stats.gc_pause_total_ns

    def collect(self, stop: threading.Event) -> None:
        """Record a sample every interval until ``stop`` is set."""
        seconds = self.interval.total_seconds()
        if seconds <= 0:
            raise ValueError("non-positive interval for runtime collector")
        while not stop.wait(seconds):
            self.record()
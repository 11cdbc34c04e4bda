"""
Viva Metrics — in-process counters, gauges and latency histograms.

No external dependencies; /metrics serves snapshot() as JSON.

Usage:
    from viva.core.metrics import metrics

    metrics.inc("session.interrupts")
    metrics.observe("session.stage_ms", 412.0, labels={"stage": "llm"})
    metrics.gauge_set("sessions.active", 3)
"""

from __future__ import annotations

import time
from collections import defaultdict, deque


class MetricsCollector:
    """Process-wide metrics: counters, gauges, rolling-window histograms."""

    HISTOGRAM_MAX_SAMPLES = 1000

    _instance: "MetricsCollector | None" = None

    @classmethod
    def get(cls) -> "MetricsCollector":
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def __init__(self) -> None:
        self._counters: dict[str, int] = defaultdict(int)
        self._gauges: dict[str, float] = defaultdict(float)
        self._histograms: dict[str, deque[float]] = defaultdict(
            lambda: deque(maxlen=self.HISTOGRAM_MAX_SAMPLES)
        )
        self._started_at = time.time()

    def inc(self, name: str, value: int = 1, labels: dict | None = None) -> None:
        self._counters[self._key(name, labels)] += value

    def observe(self, name: str, value: float, labels: dict | None = None) -> None:
        """Record one observation; the oldest sample drops once the window is full."""
        self._histograms[self._key(name, labels)].append(value)

    def gauge_set(self, name: str, value: float, labels: dict | None = None) -> None:
        self._gauges[self._key(name, labels)] = value

    def gauge_inc(self, name: str, value: float = 1.0, labels: dict | None = None) -> None:
        self._gauges[self._key(name, labels)] += value

    def gauge_dec(self, name: str, value: float = 1.0, labels: dict | None = None) -> None:
        self._gauges[self._key(name, labels)] -= value

    def counter(self, name: str, labels: dict | None = None) -> int:
        return self._counters.get(self._key(name, labels), 0)

    def percentile(self, name: str, p: float, labels: dict | None = None) -> float | None:
        samples = self._histograms.get(self._key(name, labels))
        if not samples:
            return None
        ordered = sorted(samples)
        return ordered[min(int(len(ordered) * p / 100), len(ordered) - 1)]

    def snapshot(self) -> dict:
        """Counters, gauges and p50/p95/p99 summaries for JSON output."""
        histograms: dict[str, dict] = {}
        for key, samples in self._histograms.items():
            if not samples:
                continue
            ordered = sorted(samples)
            n = len(ordered)
            histograms[key] = {
                "count": n,
                "min": ordered[0],
                "max": ordered[-1],
                "p50": ordered[n // 2],
                "p95": ordered[min(int(n * 0.95), n - 1)],
                "p99": ordered[min(int(n * 0.99), n - 1)],
            }
        return {
            "uptime_seconds": round(time.time() - self._started_at, 1),
            "counters": dict(self._counters),
            "gauges": dict(self._gauges),
            "histograms": histograms,
        }

    def reset(self) -> None:
        self._counters.clear()
        self._gauges.clear()
        self._histograms.clear()

    def _key(self, name: str, labels: dict | None) -> str:
        """Example: "session.stage_ms{stage=llm}"."""
        if not labels:
            return name
        label_str = ",".join(f"{k}={v}" for k, v in sorted(labels.items()))
        return f"{name}{{{label_str}}}"


metrics = MetricsCollector.get()

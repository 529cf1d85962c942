"""Zero-impact in-memory playback metrics.

All counters are plain Python integers manipulated inside the single-threaded
async event loop; no locks and no I/O.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field


@dataclass
class OutcomeStats:
    """Outcome counters keyed by stage (``ok`` for success)."""

    total: int = 0
    total_duration_ns: int = 0
    outcomes: dict[str, int] = field(default_factory=dict)

    def record(self, outcome: str, duration_ns: int) -> None:
        self.total += 1
        self.total_duration_ns += duration_ns
        self.outcomes[outcome] = self.outcomes.get(outcome, 0) + 1

    def snapshot(self) -> dict[str, object]:
        """Return a JSON-serializable summary."""
        avg_ms = (
            round(self.total_duration_ns / self.total / 1_000_000, 1)
            if self.total
            else 0.0
        )
        return {
            "total": self.total,
            "outcomes": dict(sorted(self.outcomes.items())),
            "avg_duration_ms": avg_ms,
        }


@dataclass
class MetricsCollector:
    """Central in-memory metrics collector."""

    _resolutions: OutcomeStats = field(default_factory=OutcomeStats)
    _proxy: OutcomeStats = field(default_factory=OutcomeStats)
    _proxy_bytes: int = 0
    _start_ns: int = field(default_factory=time.perf_counter_ns)

    def record_resolution(self, outcome: str, duration_ns: int) -> None:
        """Record one pipeline run (``ok`` or the failing stage)."""
        self._resolutions.record(outcome, duration_ns)

    def record_proxy(
        self, outcome: str, duration_ns: int, bytes_sent: int = 0
    ) -> None:
        """Record one proxied request (``ok`` or the failing stage)."""
        self._proxy.record(outcome, duration_ns)
        self._proxy_bytes += bytes_sent

    def snapshot(self) -> dict[str, object]:
        uptime_s = round((time.perf_counter_ns() - self._start_ns) / 1e9, 1)
        proxy = self._proxy.snapshot()
        proxy["bytes_sent"] = self._proxy_bytes
        return {
            "uptime_seconds": uptime_s,
            "resolutions": self._resolutions.snapshot(),
            "proxy": proxy,
        }

"""Metrics collection for composite jobs."""

import time
from typing import Dict, Any
from collections import defaultdict


class MetricsCollector:
    """
    Collects stage timings and counters for a single job.
    Implements IMetricsCollector protocol.
    """

    def __init__(self):
        self._start_time = time.time()
        self._timers: Dict[str, float] = {}
        self._metrics: Dict[str, Any] = defaultdict(list)
        self._counters: Dict[str, int] = defaultdict(int)

    def start_timer(self, name: str) -> None:
        """Start a named timer."""
        self._timers[name] = time.time()

    def stop_timer(self, name: str) -> float:
        """
        Stop a named timer and return elapsed time.

        Raises:
            KeyError: If timer was not started
        """
        if name not in self._timers:
            raise KeyError(f"Timer '{name}' was not started")

        elapsed = time.time() - self._timers[name]
        self.record_metric(f"{name}_duration", elapsed)
        del self._timers[name]
        return elapsed

    def record_metric(self, name: str, value: Any) -> None:
        """Record a metric value."""
        self._metrics[name].append(value)

    def increment_counter(self, name: str, amount: int = 1) -> None:
        """Increment a counter."""
        self._counters[name] += amount

    def get_summary(self) -> Dict[str, Any]:
        """
        Get summary of all metrics.

        Returns:
            Dictionary with metric summaries
        """
        summary = {
            "total_elapsed": self.elapsed_time(),
            "counters": dict(self._counters),
            "metrics": {}
        }

        for name, values in self._metrics.items():
            if values:
                if all(isinstance(v, (int, float)) for v in values):
                    summary["metrics"][name] = {
                        "count": len(values),
                        "sum": sum(values),
                        "avg": sum(values) / len(values),
                        "min": min(values),
                        "max": max(values),
                    }
                else:
                    summary["metrics"][name] = {
                        "count": len(values),
                        "values": values
                    }

        return summary

    def format_durations(self) -> str:
        """One-line rendering of the recorded ``*_duration`` metrics."""
        parts = []
        for name, values in self._metrics.items():
            if name.endswith("_duration") and values:
                parts.append(f"{name[:-len('_duration')]}={sum(values):.2f}s")
        parts.append(f"total={self.elapsed_time():.2f}s")
        return " ".join(parts)

    def elapsed_time(self) -> float:
        """Get total elapsed time since initialization."""
        return time.time() - self._start_time

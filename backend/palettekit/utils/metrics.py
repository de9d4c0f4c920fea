"""
Palettekit Metrics Collection
In-process metrics collection for monitoring and performance tracking.
"""
import time
from collections import defaultdict, Counter
from typing import Any, Dict, List, Optional
from threading import Lock


class MetricsCollector:
    """Simple in-process metrics collector."""

    def __init__(self):
        """Initialize metrics collector."""
        self._lock = Lock()
        self._counters: Dict[str, int] = Counter()
        self._timings: Dict[str, List[float]] = defaultdict(list)
        self._sample_counts: List[float] = []
        self._start_time = time.time()

    def increment_request_count(self, source: str):
        """Increment total and per-source request counters."""
        with self._lock:
            self._counters["palette_requests_total"] += 1
            self._counters[f"palette_requests_total_{source}"] += 1

    def increment_fallback_count(self):
        """Increment fallback palette counter."""
        with self._lock:
            self._counters["palette_fallback_total"] += 1

    def increment_failure_count(self, error_type: str):
        """Increment failure counter by error type."""
        with self._lock:
            self._counters[f"palette_failed_total_{error_type}"] += 1

    def increment_cache_hit_count(self):
        """Increment image cache hit counter."""
        with self._lock:
            self._counters["palette_cache_hits_total"] += 1

    def increment_degenerate_count(self):
        """Increment counter of palettes with fewer clusters than requested."""
        with self._lock:
            self._counters["palette_degenerate_total"] += 1

    def record_timing(self, operation: str, duration_ms: float):
        """Record timing for an operation."""
        with self._lock:
            self._timings[f"{operation}_duration_ms"].append(duration_ms)

    def record_sample_count(self, count: int):
        """Record how many pixels survived sampling."""
        with self._lock:
            self._sample_counts.append(float(count))

    def get_counters(self) -> Dict[str, int]:
        """Get current counter values."""
        with self._lock:
            return dict(self._counters)

    def get_timing_stats(self) -> Dict[str, Dict[str, float]]:
        """Get timing statistics."""
        with self._lock:
            return {
                operation: self._stats(timings)
                for operation, timings in self._timings.items()
                if timings
            }

    def get_sample_count_stats(self) -> Dict[str, float]:
        """Get sample count statistics."""
        with self._lock:
            if not self._sample_counts:
                return {}
            return self._stats(self._sample_counts)

    def get_uptime_seconds(self) -> float:
        """Get service uptime in seconds."""
        return time.time() - self._start_time

    def get_summary(self) -> Dict[str, Any]:
        """Get complete metrics summary."""
        return {
            "uptime_seconds": self.get_uptime_seconds(),
            "counters": self.get_counters(),
            "timing_stats": self.get_timing_stats(),
            "sample_count_stats": self.get_sample_count_stats()
        }

    def reset(self):
        """Reset all metrics (for testing)."""
        with self._lock:
            self._counters.clear()
            self._timings.clear()
            self._sample_counts.clear()
            self._start_time = time.time()

    @classmethod
    def _stats(cls, data: List[float]) -> Dict[str, float]:
        return {
            "count": len(data),
            "mean": sum(data) / len(data),
            "min": min(data),
            "max": max(data),
            "p50": cls._percentile(data, 50),
            "p95": cls._percentile(data, 95)
        }

    @staticmethod
    def _percentile(data: List[float], percentile: int) -> float:
        """Calculate percentile of data."""
        if not data:
            return 0.0

        sorted_data = sorted(data)
        k = (len(sorted_data) - 1) * percentile / 100
        f = int(k)
        c = k - f

        if f + 1 < len(sorted_data):
            return sorted_data[f] + c * (sorted_data[f + 1] - sorted_data[f])
        else:
            return sorted_data[f]


# Global metrics instance
_metrics: Optional[MetricsCollector] = None


def get_metrics() -> MetricsCollector:
    """Get or create global metrics collector."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector()
    return _metrics


def reset_metrics():
    """Reset global metrics (for testing)."""
    get_metrics().reset()

from __future__ import annotations

import threading
from collections import Counter, defaultdict, deque
from dataclasses import dataclass
from typing import Deque, Dict


@dataclass
class PathStats:
    latencies_ms: Deque[float]
    errors: int
    total: int


class MetricsRegistry:
    """In-memory metrics registry.

    - Per-path rolling latency window for p95 calculation and error counts
    - Named event counters (enrollments, completions, conflicts)
    """

    def __init__(self, window_size: int = 200) -> None:
        self._window_size = window_size
        self._lock = threading.Lock()
        self._per_path: Dict[str, PathStats] = defaultdict(
            lambda: PathStats(latencies_ms=deque(maxlen=self._window_size), errors=0, total=0)
        )
        self._events: Counter[str] = Counter()

    def record(self, path: str, latency_ms: float, *, is_error: bool = False) -> None:
        with self._lock:
            stats = self._per_path[path]
            stats.latencies_ms.append(latency_ms)
            stats.total += 1
            if is_error:
                stats.errors += 1

    def incr(self, event: str, amount: int = 1) -> None:
        with self._lock:
            self._events[event] += amount

    def snapshot(self) -> dict[str, object]:
        with self._lock:
            paths: Dict[str, Dict[str, float | int]] = {}
            for path, stats in self._per_path.items():
                paths[path] = {
                    "p95_ms": round(calculate_p95(list(stats.latencies_ms)), 2),
                    "count": stats.total,
                    "errors": stats.errors,
                }
            return {"paths": paths, "events": dict(self._events)}

    def reset(self) -> None:
        with self._lock:
            self._per_path.clear()
            self._events.clear()


def calculate_p95(values: list[float]) -> float:
    if not values:
        return 0.0
    sorted_vals = sorted(values)
    k = int(0.95 * (len(sorted_vals) - 1))
    return sorted_vals[k]


registry = MetricsRegistry()

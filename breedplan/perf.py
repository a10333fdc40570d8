"""Stage timing for recommendation runs.

Usage:
    timer = StageTimer(enabled=True)
    result = recommend_pairings(population, 12, perf=timer)
    timer.summary()   # {'evaluate': {'total_s': ..., 'calls': 1}, ...}

Disabled timers do nothing.
"""

import time
from collections import defaultdict
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict


@dataclass
class StageStats:
    total_time: float = 0.0
    calls: int = 0

    @property
    def mean_time(self) -> float:
        return self.total_time / self.calls if self.calls > 0 else 0.0


class StageTimer:
    """Wall-clock time per named stage."""

    def __init__(self, enabled: bool = False):
        self.enabled = enabled
        self._stats: Dict[str, StageStats] = defaultdict(StageStats)

    @contextmanager
    def track(self, stage: str):
        if not self.enabled:
            yield
            return
        t0 = time.perf_counter()
        try:
            yield
        finally:
            stats = self._stats[stage]
            stats.total_time += time.perf_counter() - t0
            stats.calls += 1

    def get_stats(self) -> Dict[str, StageStats]:
        return dict(self._stats)

    def summary(self) -> dict:
        """JSON-friendly dict, slowest stage first."""
        ordered = sorted(self._stats.items(), key=lambda x: -x[1].total_time)
        return {
            name: {
                'total_s': round(s.total_time, 6),
                'calls': s.calls,
                'mean_ms': round(s.mean_time * 1000, 3),
            }
            for name, s in ordered
        }

    def report(self, title: str = "Stage timings") -> str:
        lines = [title, f"{'Stage':<12} {'Total (s)':>10} {'Calls':>6}"]
        for name, s in sorted(self._stats.items(), key=lambda x: -x[1].total_time):
            lines.append(f"{name:<12} {s.total_time:>10.4f} {s.calls:>6}")
        return '\n'.join(lines)

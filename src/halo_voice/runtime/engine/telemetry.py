"""Stage timings for a conversation turn (dispatch, response, playback, generation)."""

from __future__ import annotations

from collections import deque
from contextlib import contextmanager
from dataclasses import dataclass
from time import perf_counter
from typing import Deque, Dict, Iterator, Optional


@dataclass
class StageMeasurement:
    stage: str
    duration_ms: float


class LatencyProbe:
    """Keeps the most recent ``capacity`` timings across all stages."""

    def __init__(self, capacity: int = 200) -> None:
        self._measurements: Deque[StageMeasurement] = deque(maxlen=capacity)

    @contextmanager
    def track(self, stage: str) -> Iterator[None]:
        start = perf_counter()
        try:
            yield
        finally:
            self._measurements.append(StageMeasurement(stage, (perf_counter() - start) * 1000.0))

    def last(self, stage: str) -> Optional[float]:
        for item in reversed(self._measurements):
            if item.stage == stage:
                return item.duration_ms
        return None

    def stage_stats(self) -> Dict[str, Dict[str, float]]:
        """Per-stage ``count``, ``mean_ms`` and ``max_ms`` over the retained window."""
        stats: Dict[str, Dict[str, float]] = {}
        for item in self._measurements:
            entry = stats.setdefault(item.stage, {"count": 0, "mean_ms": 0.0, "max_ms": 0.0})
            entry["count"] += 1
            entry["mean_ms"] += (item.duration_ms - entry["mean_ms"]) / entry["count"]
            entry["max_ms"] = max(entry["max_ms"], item.duration_ms)
        return stats

    def clear(self) -> None:
        self._measurements.clear()

"""Per-target rolling history used for uptime derivation."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Any

from metamonitor.health.engine import ProbeOutcome, Status

HISTORY_CAPACITY = 20


@dataclass(frozen=True)
class HistorySample:
    timestamp: str
    status: Status
    latency_ms: int

    @classmethod
    def from_outcome(cls, outcome: ProbeOutcome) -> HistorySample:
        return cls(timestamp=outcome.observed_at, status=outcome.status, latency_ms=outcome.latency_ms)

    def to_dict(self) -> dict[str, Any]:
        return {"timestamp": self.timestamp, "status": self.status.value, "latency_ms": self.latency_ms}


class HistoryStore:
    """Fixed-capacity FIFO window of samples per target; oldest evicted first."""

    def __init__(self, capacity: int = HISTORY_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError(f"History capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._windows: dict[str, deque[HistorySample]] = {}

    def append(self, target_id: str, sample: HistorySample) -> None:
        window = self._windows.get(target_id)
        if window is None:
            window = self._windows[target_id] = deque(maxlen=self.capacity)
        window.append(sample)

    def samples(self, target_id: str) -> list[HistorySample]:
        """Oldest-first copy of a target's window."""
        return list(self._windows.get(target_id, ()))

    def uptime_ratio(self, target_id: str) -> float | None:
        """Percentage of ``up`` samples to one decimal, or None with no history."""
        window = self._windows.get(target_id)
        if not window:
            return None
        up_count = sum(1 for s in window if s.status == Status.UP)
        return round(up_count / len(window) * 100, 1)

    def __len__(self) -> int:
        return len(self._windows)

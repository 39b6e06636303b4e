"""Rolling event log of scan activity, mirrored to the Python logger."""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)

LOG_CAPACITY = 26


class Severity(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


_LOG_LEVELS = {
    Severity.INFO: logging.INFO,
    Severity.SUCCESS: logging.INFO,
    Severity.WARNING: logging.WARNING,
    Severity.ERROR: logging.ERROR,
}


def _clock() -> str:
    return datetime.now().strftime("%H:%M:%S")


@dataclass(frozen=True)
class LogEntry:
    message: str
    severity: Severity = Severity.INFO
    time: str = field(default_factory=_clock)

    def to_dict(self) -> dict[str, Any]:
        return {"time": self.time, "message": self.message, "severity": self.severity.value}


class EventLog:
    """Chronological FIFO of log entries; the oldest is dropped past capacity."""

    def __init__(self, capacity: int = LOG_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError(f"Log capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._entries: deque[LogEntry] = deque(maxlen=capacity)

    def append(self, message: str, severity: Severity = Severity.INFO) -> LogEntry:
        entry = LogEntry(message=message, severity=severity)
        self._entries.append(entry)
        logger.log(_LOG_LEVELS[severity], "%s", message)
        return entry

    def entries(self) -> list[LogEntry]:
        return list(self._entries)

    def to_list(self) -> list[dict[str, Any]]:
        return [e.to_dict() for e in self._entries]

    def __len__(self) -> int:
        return len(self._entries)

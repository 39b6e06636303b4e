"""Health subsystem — probe engine, rolling windows, orchestrator, scheduler."""

from .aggregator import compute_health
from .engine import ProbeOutcome, Status, classify_failure, classify_response, probe
from .events import EventLog, LogEntry, Severity
from .history import HistorySample, HistoryStore
from .scanner import MonitorState, ScanOrchestrator, ScanResult
from .scheduler import ScanScheduler, SchedulerState

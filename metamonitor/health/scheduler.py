"""Scan scheduler — one immediate scan, then a scan trigger every interval.

Ticks are spaced from the previous tick, not from scan completion, so a
slow scan never shifts the cadence. A tick or manual trigger that lands
while a scan is running is dropped by the orchestrator's single-flight
guard.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Any

from metamonitor.config import ConfigurationError, Settings, settings as default_settings
from metamonitor.health.scanner import MonitorState, ScanOrchestrator, ScanResult
from metamonitor.targets.registry import TargetRegistry

logger = logging.getLogger(__name__)


class SchedulerState(str, Enum):
    IDLE = "idle"
    SCANNING = "scanning"


class ScanScheduler:
    """Owns the MonitorState and drives the ScanOrchestrator on a fixed period."""

    def __init__(
        self,
        registry: TargetRegistry,
        config: Settings | None = None,
        orchestrator: ScanOrchestrator | None = None,
    ) -> None:
        config = config or default_settings
        if config.scan_interval_seconds <= 0:
            raise ConfigurationError(
                f"Scan interval must be positive, got {config.scan_interval_seconds}s"
            )
        if config.history_capacity < 1 or config.log_capacity < 1:
            raise ConfigurationError(
                f"Window capacities must be positive, got history={config.history_capacity} "
                f"log={config.log_capacity}"
            )

        self.registry = registry
        self.interval = config.scan_interval_seconds
        if orchestrator is None:
            state = MonitorState(config.history_capacity, config.log_capacity)
            orchestrator = ScanOrchestrator(registry, state, timeout_ms=config.probe_timeout_ms)
        self.orchestrator = orchestrator
        self.monitor = orchestrator.state
        self._task: asyncio.Task[None] | None = None
        self._scans: set[asyncio.Task[ScanResult | None]] = set()
        self._running = False

    @property
    def state(self) -> SchedulerState:
        return SchedulerState.SCANNING if self.monitor.scanning else SchedulerState.IDLE

    async def start(self) -> None:
        """Start the timed loop; its first tick scans immediately."""
        if self._running:
            return
        self._running = True
        self._task = asyncio.create_task(self._tick_loop(), name="metamonitor-scheduler")
        logger.info(
            "Scan scheduler started: %d targets every %ss", len(self.registry), self.interval,
        )

    async def stop(self) -> None:
        """Stop ticking and let any in-flight scan settle."""
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        if self._scans:
            await asyncio.gather(*self._scans, return_exceptions=True)
        logger.info("Scan scheduler stopped")

    async def run_scan(self) -> ScanResult | None:
        """Manual trigger; a no-op returning None while a scan is running."""
        return await self.orchestrator.run_scan()

    def trigger(self) -> asyncio.Task[ScanResult | None] | None:
        """Launch a scan in the background unless one is already running."""
        if self.monitor.scanning:
            logger.debug("Tick skipped — scan in progress")
            return None
        task = asyncio.create_task(self.orchestrator.run_scan())
        self._scans.add(task)
        task.add_done_callback(self._scan_done)
        return task

    def _scan_done(self, task: asyncio.Task[ScanResult | None]) -> None:
        self._scans.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Scan failed", exc_info=task.exception())

    async def _tick_loop(self) -> None:
        while self._running:
            self.trigger()
            await asyncio.sleep(self.interval)

    def snapshot(self) -> dict[str, Any]:
        """Read-only view of everything the presentation layer consumes."""
        scan = self.monitor.scan
        targets: dict[str, dict[str, Any]] = {}
        for t in self.registry:
            outcome = scan.outcomes.get(t.id) if scan else None
            targets[t.id] = {
                "name": t.name,
                "url": t.url,
                "status": outcome.status.value if outcome else "pending",
                "latency": outcome.latency_ms if outcome else 0,
                "error": outcome.error if outcome else None,
                "observedAt": outcome.observed_at if outcome else None,
                "uptime": self.monitor.history.uptime_ratio(t.id),
            }
        return {
            "globalHealth": self.monitor.global_health,
            "state": self.state.value,
            "lastCheck": self.monitor.last_completed,
            "checks": f"{len(scan) if scan else 0}/{len(self.registry)}",
            "targets": targets,
        }

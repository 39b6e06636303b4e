"""Scan orchestrator — fans probes out over every target and joins them.

Each probe records its own history sample and log event the moment it
settles; the ScanResult and global health are published only after every
probe in the cycle has settled. At most one scan runs at a time.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

import httpx

from metamonitor.config import ConfigurationError
from metamonitor.health.aggregator import compute_health
from metamonitor.health.engine import PROBE_TIMEOUT_MS, ProbeOutcome, Status, probe, utc_now
from metamonitor.health.events import EventLog, Severity
from metamonitor.health.history import HistorySample, HistoryStore
from metamonitor.targets.registry import Target, TargetRegistry

logger = logging.getLogger(__name__)

HEALTHY_THRESHOLD = 80

ProbeFn = Callable[[Target, int, httpx.AsyncClient], Awaitable[ProbeOutcome]]


@dataclass(frozen=True)
class ScanResult:
    """Complete set of outcomes for one cycle, keyed by target id."""

    outcomes: Mapping[str, ProbeOutcome]
    completed_at: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "outcomes", MappingProxyType(dict(self.outcomes)))

    def __len__(self) -> int:
        return len(self.outcomes)

    def to_dict(self) -> dict[str, Any]:
        return {
            "completed_at": self.completed_at,
            "outcomes": {tid: o.to_dict() for tid, o in self.outcomes.items()},
        }


class MonitorState:
    """Process-wide mutable state: latest scan, health, rolling windows, scan flag."""

    def __init__(self, history_capacity: int = 20, log_capacity: int = 26) -> None:
        self.history = HistoryStore(history_capacity)
        self.events = EventLog(log_capacity)
        self.scan: ScanResult | None = None
        self.global_health: int | None = None  # undefined until the first scan completes
        self.scanning = False
        self.last_completed: str | None = None


def _default_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(follow_redirects=True)


class ScanOrchestrator:
    """Runs one single-flight scan over the registry against a MonitorState."""

    def __init__(
        self,
        registry: TargetRegistry,
        state: MonitorState,
        timeout_ms: int = PROBE_TIMEOUT_MS,
        probe_fn: ProbeFn | None = None,
        client_factory: Callable[[], httpx.AsyncClient] = _default_client,
    ) -> None:
        if timeout_ms <= 0:
            raise ConfigurationError(f"Probe timeout must be positive, got {timeout_ms}ms")
        self.registry = registry
        self.state = state
        self.timeout_ms = timeout_ms
        self._probe = probe_fn or probe
        self._client_factory = client_factory

    async def run_scan(self) -> ScanResult | None:
        """Probe every target once; returns None if a scan is already running."""
        if self.state.scanning:
            logger.debug("Scan already in progress — trigger ignored")
            return None
        # Flag is set before the first await so a concurrent trigger sees it.
        self.state.scanning = True
        try:
            return await self._scan()
        finally:
            self.state.scanning = False

    async def _scan(self) -> ScanResult:
        targets = self.registry.targets
        self.state.events.append(f"Scan started: probing {len(targets)} targets", Severity.INFO)

        async with self._client_factory() as client:
            outcomes = await asyncio.gather(
                *(self._probe_and_record(client, t) for t in targets),
            )

        result = ScanResult(
            outcomes={t.id: o for t, o in zip(targets, outcomes)},
            completed_at=utc_now(),
        )
        health = compute_health(result.outcomes)

        self.state.scan = result
        self.state.global_health = health
        self.state.last_completed = result.completed_at

        self.state.events.append(
            f"Scan complete: global health {health}%",
            Severity.ERROR if health < HEALTHY_THRESHOLD else Severity.SUCCESS,
        )
        return result

    async def _probe_and_record(self, client: httpx.AsyncClient, target: Target) -> ProbeOutcome:
        self.state.events.append(f"Probing {target.name}...", Severity.INFO)
        outcome = await self._probe(target, self.timeout_ms, client)

        self.state.history.append(target.id, HistorySample.from_outcome(outcome))
        if outcome.status == Status.DOWN:
            self.state.events.append(
                f"{target.name} is DOWN: {outcome.error or 'unreachable'}", Severity.ERROR,
            )
        elif outcome.status == Status.DEGRADED:
            self.state.events.append(
                f"{target.name} is DEGRADED: {outcome.error or 'high latency'} ({outcome.latency_ms}ms)",
                Severity.WARNING,
            )
        else:
            self.state.events.append(
                f"{target.name} operational ({outcome.latency_ms}ms)", Severity.SUCCESS,
            )
        return outcome

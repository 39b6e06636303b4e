"""Shared test fixtures."""

from __future__ import annotations

import asyncio
from collections.abc import Callable

import pytest

from metamonitor.config import Settings
from metamonitor.health.engine import ProbeOutcome, classify_failure, classify_response
from metamonitor.health.scanner import MonitorState, ScanOrchestrator
from metamonitor.health.scheduler import ScanScheduler
from metamonitor.targets.registry import Target, TargetRegistry


@pytest.fixture
def registry() -> TargetRegistry:
    """Three targets, matching the end-to-end scenarios."""
    return TargetRegistry([
        Target("alpha", "Alpha", "https://alpha.example.com"),
        Target("beta", "Beta", "https://beta.example.com"),
        Target("gamma", "Gamma", "https://gamma.example.com"),
    ])


@pytest.fixture
def mixed_outcomes() -> dict[str, ProbeOutcome]:
    """Latencies [100, 6000, timeout] → up, degraded, down."""
    return {
        "alpha": classify_response("alpha", 100),
        "beta": classify_response("beta", 6000),
        "gamma": classify_failure("gamma", 10_000, timed_out=True),
    }


@pytest.fixture
def all_up() -> dict[str, ProbeOutcome]:
    return {tid: classify_response(tid, 120) for tid in ("alpha", "beta", "gamma")}


def scripted_probe(outcomes: dict[str, ProbeOutcome], delay: float = 0.0, calls: list[str] | None = None):
    """Probe stand-in returning canned outcomes after ``delay`` seconds."""

    async def _probe(target: Target, timeout_ms: int, client) -> ProbeOutcome:
        if calls is not None:
            calls.append(target.id)
        await asyncio.sleep(delay)
        return outcomes[target.id]

    return _probe


@pytest.fixture
def make_orchestrator(registry: TargetRegistry) -> Callable[..., ScanOrchestrator]:
    def _make(outcomes: dict[str, ProbeOutcome], delay: float = 0.0, calls: list[str] | None = None) -> ScanOrchestrator:
        return ScanOrchestrator(registry, MonitorState(), probe_fn=scripted_probe(outcomes, delay, calls))

    return _make


@pytest.fixture
def make_scheduler(registry: TargetRegistry, make_orchestrator) -> Callable[..., ScanScheduler]:
    def _make(outcomes: dict[str, ProbeOutcome], interval: float = 3600.0, delay: float = 0.0,
              calls: list[str] | None = None) -> ScanScheduler:
        config = Settings(scan_interval_seconds=interval)
        return ScanScheduler(registry, config, orchestrator=make_orchestrator(outcomes, delay, calls))

    return _make

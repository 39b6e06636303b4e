"""Tests for the scan scheduler."""

from __future__ import annotations

import asyncio

import pytest

from metamonitor.config import ConfigurationError, Settings
from metamonitor.health.scheduler import ScanScheduler, SchedulerState


class TestScanScheduler:
    def test_initial_state(self, make_scheduler, all_up) -> None:
        scheduler = make_scheduler(all_up)
        assert scheduler.state == SchedulerState.IDLE
        snap = scheduler.snapshot()
        assert snap["globalHealth"] is None
        assert snap["lastCheck"] is None
        assert snap["checks"] == "0/3"
        assert {t["status"] for t in snap["targets"].values()} == {"pending"}
        assert all(t["uptime"] is None for t in snap["targets"].values())

    def test_start_scans_immediately(self, make_scheduler, mixed_outcomes) -> None:
        scheduler = make_scheduler(mixed_outcomes, interval=3600)

        async def scenario() -> None:
            await scheduler.start()
            await asyncio.sleep(0.05)
            await scheduler.stop()

        asyncio.run(scenario())
        assert scheduler.monitor.global_health == 50
        assert scheduler.monitor.last_completed is not None
        assert scheduler.state == SchedulerState.IDLE

    def test_ticks_repeat(self, make_scheduler, all_up) -> None:
        calls: list[str] = []
        scheduler = make_scheduler(all_up, interval=0.05, calls=calls)

        async def scenario() -> None:
            await scheduler.start()
            await asyncio.sleep(0.18)
            await scheduler.stop()

        asyncio.run(scenario())
        # immediate scan + at least two ticks, 3 targets each
        assert len(calls) >= 9
        assert len(calls) % 3 == 0

    def test_slow_scan_does_not_overlap(self, make_scheduler, all_up) -> None:
        calls: list[str] = []
        scheduler = make_scheduler(all_up, interval=0.02, delay=0.15, calls=calls)

        async def scenario() -> None:
            await scheduler.start()
            await asyncio.sleep(0.05)
            assert scheduler.state == SchedulerState.SCANNING
            await asyncio.sleep(0.05)
            await scheduler.stop()

        asyncio.run(scenario())
        # only the first scan was admitted while it was still running
        assert len(calls) == 3

    def test_manual_trigger_while_scanning_is_noop(self, make_scheduler, all_up) -> None:
        scheduler = make_scheduler(all_up, delay=0.05)

        async def scenario():
            first = asyncio.create_task(scheduler.run_scan())
            await asyncio.sleep(0.01)
            assert scheduler.state == SchedulerState.SCANNING
            second = await scheduler.run_scan()
            return await first, second

        first, second = asyncio.run(scenario())
        assert first is not None
        assert second is None

    def test_trigger_returns_none_while_scanning(self, make_scheduler, all_up) -> None:
        scheduler = make_scheduler(all_up, delay=0.05)

        async def scenario():
            task = scheduler.trigger()
            await asyncio.sleep(0.01)
            skipped = scheduler.trigger()
            await task
            return task, skipped

        task, skipped = asyncio.run(scenario())
        assert task is not None
        assert skipped is None

    def test_stop_waits_for_inflight_scan(self, make_scheduler, all_up) -> None:
        scheduler = make_scheduler(all_up, delay=0.05)

        async def scenario() -> None:
            await scheduler.start()
            await asyncio.sleep(0.01)
            await scheduler.stop()

        asyncio.run(scenario())
        assert scheduler.monitor.global_health == 100

    def test_start_is_idempotent(self, make_scheduler, all_up) -> None:
        calls: list[str] = []
        scheduler = make_scheduler(all_up, calls=calls)

        async def scenario() -> None:
            await scheduler.start()
            await scheduler.start()
            await asyncio.sleep(0.05)
            await scheduler.stop()

        asyncio.run(scenario())
        assert len(calls) == 3

    def test_snapshot_after_scan(self, make_scheduler, mixed_outcomes) -> None:
        scheduler = make_scheduler(mixed_outcomes)
        asyncio.run(scheduler.run_scan())

        snap = scheduler.snapshot()
        assert snap["globalHealth"] == 50
        assert snap["state"] == "idle"
        assert snap["checks"] == "3/3"
        gamma = snap["targets"]["gamma"]
        assert gamma["status"] == "down"
        assert gamma["latency"] == 0
        assert gamma["error"] == "Connection timeout"
        assert gamma["uptime"] == 0.0
        assert snap["targets"]["alpha"]["uptime"] == 100.0

    def test_rejects_non_positive_interval(self, registry) -> None:
        with pytest.raises(ConfigurationError):
            ScanScheduler(registry, Settings(scan_interval_seconds=0))

    def test_rejects_non_positive_timeout(self, registry) -> None:
        with pytest.raises(ConfigurationError):
            ScanScheduler(registry, Settings(probe_timeout_ms=-1))

    def test_builds_state_from_settings(self, registry) -> None:
        scheduler = ScanScheduler(registry, Settings(history_capacity=5, log_capacity=7))
        assert scheduler.monitor.history.capacity == 5
        assert scheduler.monitor.events.capacity == 7
        assert scheduler.orchestrator.timeout_ms == 10_000

    @pytest.mark.parametrize("field", ["history_capacity", "log_capacity"])
    def test_rejects_non_positive_capacity(self, registry, field: str) -> None:
        with pytest.raises(ConfigurationError, match="capacities"):
            ScanScheduler(registry, Settings(**{field: 0}))

"""API routes exposing the monitor to the presentation layer.

Endpoints:
  GET  /api/v1/status             — global health + latest outcome per target
  GET  /api/targets               — monitored targets
  GET  /api/history/{target_id}   — rolling samples + uptime for one target
  GET  /api/logs                  — rolling event log, oldest first
  POST /api/scan                  — manual scan trigger (single-flight)

Handlers are async so reads of the rolling windows run on the event loop
thread that appends to them.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, HTTPException, Request

from metamonitor.health.engine import utc_now
from metamonitor.health.scheduler import ScanScheduler

logger = logging.getLogger(__name__)

status_router = APIRouter()


def _scheduler(request: Request) -> ScanScheduler:
    return request.app.state.scheduler


@status_router.get("/v1/status")
async def status(request: Request) -> dict[str, Any]:
    """Snapshot of global health and every target's latest outcome."""
    return {"timestamp": utc_now(), **_scheduler(request).snapshot()}


@status_router.get("/targets")
async def list_targets(request: Request) -> dict[str, Any]:
    scheduler = _scheduler(request)
    return {"targets": scheduler.registry.to_dict()}


@status_router.get("/history/{target_id}")
async def target_history(target_id: str, request: Request) -> dict[str, Any]:
    scheduler = _scheduler(request)
    if scheduler.registry.get(target_id) is None:
        raise HTTPException(status_code=404, detail=f"Target not found: {target_id}")

    history = scheduler.monitor.history
    uptime = history.uptime_ratio(target_id)
    return {
        "target_id": target_id,
        "samples": [s.to_dict() for s in history.samples(target_id)],
        "uptime": uptime if uptime is not None else "unknown",
    }


@status_router.get("/logs")
async def logs(request: Request) -> dict[str, Any]:
    return {"logs": _scheduler(request).monitor.events.to_list()}


@status_router.post("/scan")
async def trigger_scan(request: Request) -> dict[str, Any]:
    """Run a scan now and return the fresh snapshot."""
    scheduler = _scheduler(request)
    result = await scheduler.run_scan()
    if result is None:
        return {"started": False, "state": scheduler.state.value}
    return {"started": True, **scheduler.snapshot()}

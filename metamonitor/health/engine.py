"""Probe engine — one timeout-bounded HEAD check per target, classified.

Classification encodes two independent failure models:

* a request that completes is judged purely on latency (the status code is
  recorded but never trusted, some endpoints refuse to disclose it);
* a request that fails is ``down`` when it timed out (or took longer than
  8 s), otherwise the error is treated as opaque and the elapsed time is
  used as a liveness heuristic.

Every code path resolves to a ProbeOutcome; nothing is raised to the caller.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

import httpx

from metamonitor.targets.registry import Target

logger = logging.getLogger(__name__)

PROBE_TIMEOUT_MS = 10_000

# Completed requests
UP_LATENCY_LIMIT_MS = 5_000  # at or above this a reachable target is degraded
HIGH_LATENCY_MS = 15_000
MAX_DISPLAY_LATENCY_MS = 9_999

# Failed requests
TIMEOUT_ELAPSED_MS = 8_000
OPAQUE_UP_LIMIT_MS = 3_000

HIGH_LATENCY_ERROR = "High latency detected"
TIMEOUT_ERROR = "Connection timeout"


# ── Models ───────────────────────────────────────────────────────────────────


class Status(str, Enum):
    UP = "up"
    DEGRADED = "degraded"
    DOWN = "down"


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class ProbeOutcome:
    """Classified result of one liveness check against one target."""

    target_id: str
    status: Status
    latency_ms: int
    error: str | None = None
    status_code: int | None = None
    observed_at: str = field(default_factory=utc_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "target_id": self.target_id,
            "status": self.status.value,
            "latency_ms": self.latency_ms,
            "error": self.error,
            "status_code": self.status_code,
            "observed_at": self.observed_at,
        }


# ── Classification ───────────────────────────────────────────────────────────


def _clamp(latency_ms: float) -> int:
    return max(0, min(int(latency_ms), MAX_DISPLAY_LATENCY_MS))


def classify_response(
    target_id: str, latency_ms: float, status_code: int | None = None,
) -> ProbeOutcome:
    """Classify a request that completed without error."""
    if latency_ms < UP_LATENCY_LIMIT_MS:
        status, error = Status.UP, None
    elif latency_ms >= HIGH_LATENCY_MS:
        status, error = Status.DEGRADED, HIGH_LATENCY_ERROR
    else:
        status, error = Status.DEGRADED, None

    return ProbeOutcome(
        target_id=target_id, status=status, latency_ms=_clamp(latency_ms),
        error=error, status_code=status_code,
    )


def classify_failure(target_id: str, latency_ms: float, timed_out: bool) -> ProbeOutcome:
    """Classify a request that raised or was aborted by the timeout."""
    if timed_out or latency_ms > TIMEOUT_ELAPSED_MS:
        return ProbeOutcome(
            target_id=target_id, status=Status.DOWN, latency_ms=0, error=TIMEOUT_ERROR,
        )

    # Opaque error: cannot tell a real failure from a refused status, so
    # infer liveness from how fast the error surfaced.
    status = Status.UP if latency_ms < OPAQUE_UP_LIMIT_MS else Status.DEGRADED
    return ProbeOutcome(target_id=target_id, status=status, latency_ms=_clamp(latency_ms))


# ── Probe runner ─────────────────────────────────────────────────────────────


async def probe(
    target: Target,
    timeout_ms: int = PROBE_TIMEOUT_MS,
    client: httpx.AsyncClient | None = None,
) -> ProbeOutcome:
    """HEAD ``target.url`` once, hard-cancelled after ``timeout_ms``."""
    if client is None:
        async with httpx.AsyncClient(follow_redirects=True) as own_client:
            return await probe(target, timeout_ms, own_client)

    timeout_s = timeout_ms / 1000
    t0 = time.perf_counter()
    try:
        resp = await asyncio.wait_for(
            client.head(target.url, timeout=timeout_s, headers={"Cache-Control": "no-store"}),
            timeout=timeout_s,
        )
        latency = (time.perf_counter() - t0) * 1000
        return classify_response(target.id, latency, resp.status_code)
    except (httpx.TimeoutException, asyncio.TimeoutError) as e:
        latency = (time.perf_counter() - t0) * 1000
        logger.debug("Probe %s timed out after %.0fms: %s", target.id, latency, type(e).__name__)
        return classify_failure(target.id, latency, timed_out=True)
    except Exception as e:
        latency = (time.perf_counter() - t0) * 1000
        logger.debug("Probe %s failed after %.0fms: %s: %s", target.id, latency, type(e).__name__, e)
        return classify_failure(target.id, latency, timed_out=False)

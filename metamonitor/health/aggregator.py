"""Global health score — a pure reduction over one complete scan."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from metamonitor.config import ConfigurationError
from metamonitor.health.engine import ProbeOutcome, Status

# Points in half-units so the score stays in integer arithmetic.
_HALF_POINTS = {Status.UP: 2, Status.DEGRADED: 1, Status.DOWN: 0}


def compute_health(outcomes: Mapping[str, ProbeOutcome] | Iterable[ProbeOutcome]) -> int:
    """Return the 0–100 health percentage, rounded half up.

    up counts 1.0, degraded 0.5, down 0.0, averaged over every target.
    """
    if isinstance(outcomes, Mapping):
        outcomes = outcomes.values()
    statuses = [o.status for o in outcomes]
    n = len(statuses)
    if n == 0:
        raise ConfigurationError("Cannot compute health of an empty scan")

    half_points = sum(_HALF_POINTS[s] for s in statuses)
    # round(half_points / (2n) * 100), half up
    return (half_points * 100 + n) // (2 * n)

"""Target registry — the fixed set of monitored endpoints."""

from .registry import DEFAULT_TARGETS, Target, TargetRegistry

"""Target registry — loads targets.yaml and provides the monitored endpoints.

The registry is read once at startup and never changes while the monitor
runs. When no targets file exists the built-in status-service set is used.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from metamonitor.config import ConfigurationError

logger = logging.getLogger(__name__)


# ── Data model ───────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Target:
    """One external endpoint being monitored."""

    id: str
    name: str
    url: str


DEFAULT_TARGETS: tuple[Target, ...] = (
    Target("dd", "DownDetector", "https://downdetector.com"),
    Target("iidrn", "IsItDownRightNow", "https://isitdownrightnow.com"),
    Target("dfeojm", "DownForEveryoneOrJustMe", "https://downforeveryoneorjustme.com"),
    Target("aws", "AWS Health", "https://health.aws.amazon.com/health/status"),
    Target("azure", "Azure Status", "https://status.azure.com"),
    Target("cloudflare", "Cloudflare Status", "https://www.cloudflarestatus.com"),
)


# ── Registry ─────────────────────────────────────────────────────────────────


class TargetRegistry:
    """Immutable, non-empty list of targets with unique ids."""

    def __init__(self, targets: list[Target] | tuple[Target, ...]) -> None:
        if not targets:
            raise ConfigurationError("Target registry is empty — nothing to monitor")

        seen: set[str] = set()
        for t in targets:
            if t.id in seen:
                raise ConfigurationError(f"Duplicate target id: {t.id}")
            seen.add(t.id)

        self._targets = tuple(targets)

    @classmethod
    def from_file(cls, path: Path | str) -> TargetRegistry:
        """Load targets.yaml; fall back to the built-in set when it is absent."""
        path = Path(path)
        if not path.exists():
            logger.info("Targets file not found: %s — using %d built-in targets", path, len(DEFAULT_TARGETS))
            return cls(DEFAULT_TARGETS)

        try:
            raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Failed to read {path}: {e}") from e

        if not isinstance(raw, dict):
            raise ConfigurationError(f"{path}: expected a mapping with a 'targets' list")

        targets = [_parse_target(entry) for entry in raw.get("targets") or []]
        logger.info("Loaded %d targets from %s", len(targets), path)
        return cls(targets)

    @property
    def targets(self) -> tuple[Target, ...]:
        return self._targets

    def get(self, target_id: str) -> Target | None:
        return next((t for t in self._targets if t.id == target_id), None)

    def ids(self) -> list[str]:
        return [t.id for t in self._targets]

    def to_dict(self) -> list[dict[str, Any]]:
        """Serialize all targets for the API."""
        return [{"id": t.id, "name": t.name, "url": t.url} for t in self._targets]

    def __len__(self) -> int:
        return len(self._targets)

    def __iter__(self):
        return iter(self._targets)


# ── Parsers ──────────────────────────────────────────────────────────────────


def _parse_target(raw: Any) -> Target:
    if not isinstance(raw, dict):
        raise ConfigurationError(f"Malformed target entry: {raw!r}")

    target_id = str(raw.get("id", "")).strip()
    url = str(raw.get("url", "")).strip()
    if not target_id:
        raise ConfigurationError(f"Target entry missing 'id': {raw!r}")
    if not url:
        raise ConfigurationError(f"Target '{target_id}' missing 'url'")

    return Target(id=target_id, name=raw.get("name") or target_id, url=url)

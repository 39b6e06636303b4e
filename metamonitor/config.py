from __future__ import annotations

from pydantic_settings import BaseSettings


class ConfigurationError(Exception):
    """Raised at startup when the monitor cannot be built from its settings."""


class Settings(BaseSettings):
    """Central configuration loaded from environment / .env file."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    # Probing
    probe_timeout_ms: int = 10_000
    scan_interval_seconds: float = 60.0

    # Rolling windows
    history_capacity: int = 20  # samples kept per target
    log_capacity: int = 26  # 25 retained + the newest entry

    # Targets file (absolute or relative to CWD)
    targets_file: str = "targets.yaml"

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Logging
    log_level: str = "INFO"


settings = Settings()

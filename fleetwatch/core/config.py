"""Pydantic settings loaded from YAML configuration."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, SecretStr

_settings: Settings | None = None

_DEFAULT_CONFIG_PATH = Path("config/settings.yaml")

# Fallback routing spec when an application carries no alerts.routes label.
DEFAULT_ROUTES = "*/warning/*;*/critical/*;*/resolved/*"


class AlertsConfig(BaseModel):
    """Suppression / escalation engine configuration."""

    suppress_duration_secs: float = 1800.0
    sweep_interval_secs: float = 5.0
    default_routes: str = DEFAULT_ROUTES
    queue_maxsize: int = 0


class LogNotifierConfig(BaseModel):
    """Notifier that writes every notification to the structured log."""

    enabled: bool = True


class WebhookNotifierConfig(BaseModel):
    """Generic JSON webhook notifier."""

    enabled: bool = False
    urls: list[SecretStr] = []
    timeout_secs: float = 10.0


class NotifiersConfig(BaseModel):
    """Container for all notifier configurations."""

    log: LogNotifierConfig = LogNotifierConfig()
    webhook: WebhookNotifierConfig = WebhookNotifierConfig()


class CheckerConfig(BaseModel):
    """Check producer configuration."""

    check_interval_secs: float = 30.0


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    format: str = "json"


class Settings(BaseModel):
    """Root settings container."""

    alerts: AlertsConfig = AlertsConfig()
    notifiers: NotifiersConfig = NotifiersConfig()
    checker: CheckerConfig = CheckerConfig()
    logging: LoggingConfig = LoggingConfig()


def load_settings(path: str | Path | None = None) -> Settings:
    """Load settings from a YAML file and cache globally.

    Args:
        path: Path to YAML config. Defaults to config/settings.yaml.

    Returns:
        Parsed Settings instance.
    """
    global _settings  # noqa: PLW0603

    config_path = Path(path) if path else _DEFAULT_CONFIG_PATH

    data: dict[str, Any] = {}
    if config_path.exists():
        with open(config_path) as f:
            raw = yaml.safe_load(f)
            if isinstance(raw, dict):
                data = raw

    _settings = Settings(**data)
    return _settings


def get_settings() -> Settings:
    """Return the cached settings, loading defaults if not yet loaded."""
    global _settings  # noqa: PLW0603
    if _settings is None:
        _settings = load_settings()
    return _settings


def reset_settings() -> None:
    """Reset the cached settings (useful for testing)."""
    global _settings  # noqa: PLW0603
    _settings = None

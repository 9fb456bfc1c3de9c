"""Per-application label overrides."""

from __future__ import annotations

from collections.abc import Mapping

ALERTS_ENABLED_LABEL = "alerts.enabled"
APP_ROUTES_LABEL = "alerts.routes"
CHECK_SUBSCRIPTION_LABEL = "alerts.checks.subscribe"
WEBHOOK_URL_LABEL = "alerts.webhook.url"

SUBSCRIBE_ALL_CHECKS = "all"

_TRUE = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE = frozenset({"0", "f", "F", "FALSE", "false", "False"})


def get_string(labels: Mapping[str, str], key: str, default: str) -> str:
    """Return the label value, or *default* when absent."""
    return labels.get(key, default)


def get_bool(labels: Mapping[str, str], key: str, default: bool) -> bool:
    """Return a boolean-ish label, falling back to *default* when absent or unparseable."""
    value = labels.get(key)
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    return default


def get_list(labels: Mapping[str, str], key: str, default: str) -> list[str]:
    """Return a comma-separated label as a list of stripped, non-empty items."""
    raw = labels.get(key, default)
    return [item.strip() for item in raw.split(",") if item.strip()]

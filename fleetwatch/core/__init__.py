"""Core module — config, types, logging."""

from fleetwatch.core.config import Settings, get_settings, load_settings, reset_settings
from fleetwatch.core.logging import setup_logging
from fleetwatch.core.types import CHECK_LEVELS, Application, CheckResultEvent, Severity

__all__ = [
    "CHECK_LEVELS",
    "Application",
    "CheckResultEvent",
    "Settings",
    "Severity",
    "get_settings",
    "load_settings",
    "reset_settings",
    "setup_logging",
]

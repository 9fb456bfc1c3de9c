"""Check producer boundary — checker interface and inventory poll loop."""

from fleetwatch.checks.base import Checker
from fleetwatch.checks.checker import AppChecker, subscribed_checks

__all__ = [
    "AppChecker",
    "Checker",
    "subscribed_checks",
]

"""Alert suppression, escalation, routing and notification subsystem."""

from fleetwatch.alerts.dispatcher import NotificationDispatcher
from fleetwatch.alerts.exceptions import (
    AlertsError,
    InvariantViolationError,
    NotifierError,
    RouteParseError,
)
from fleetwatch.alerts.factory import create_alert_stack
from fleetwatch.alerts.manager import AlertManager, Decision
from fleetwatch.alerts.notifiers import LogNotifier, Notifier, WebhookNotifier
from fleetwatch.alerts.routes import DEFAULT_ROUTES, RouteRule, glob_match, parse_routes
from fleetwatch.alerts.stats import NotificationStats

__all__ = [
    "DEFAULT_ROUTES",
    "AlertManager",
    "AlertsError",
    "Decision",
    "InvariantViolationError",
    "LogNotifier",
    "NotificationDispatcher",
    "NotificationStats",
    "Notifier",
    "NotifierError",
    "RouteParseError",
    "RouteRule",
    "WebhookNotifier",
    "create_alert_stack",
    "glob_match",
    "parse_routes",
]

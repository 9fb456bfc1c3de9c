"""Alerting exceptions."""

from __future__ import annotations


class AlertsError(Exception):
    """Base exception for alerting errors."""


class RouteParseError(AlertsError, ValueError):
    """A routing specification string is malformed."""


class InvariantViolationError(AlertsError):
    """Engine state reached a condition that should be impossible."""


class NotifierError(AlertsError):
    """A notifier failed to deliver a notification."""

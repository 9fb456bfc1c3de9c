"""Convenience factory for wiring the alerting stack."""

from __future__ import annotations

from fleetwatch.alerts.dispatcher import NotificationDispatcher
from fleetwatch.alerts.manager import AlertManager
from fleetwatch.alerts.notifiers import LogNotifier, Notifier, WebhookNotifier
from fleetwatch.core.config import Settings


def create_alert_stack(
    settings: Settings,
    extra_notifiers: list[Notifier] | None = None,
) -> tuple[AlertManager, NotificationDispatcher]:
    """Build a dispatcher with the enabled notifiers and a manager on top.

    Returns:
        (manager, dispatcher)
    """
    notifiers: list[Notifier] = []

    if settings.notifiers.log.enabled:
        notifiers.append(LogNotifier())

    if settings.notifiers.webhook.enabled:
        notifiers.append(WebhookNotifier(settings.notifiers.webhook))

    notifiers.extend(extra_notifiers or [])

    dispatcher = NotificationDispatcher(notifiers=notifiers)
    manager = AlertManager(dispatcher, config=settings.alerts)
    return manager, dispatcher

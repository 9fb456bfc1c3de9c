"""Notification dispatcher — fans an event out to every routed notifier."""

from __future__ import annotations

from collections.abc import Sequence

import structlog

from fleetwatch.alerts.notifiers import Notifier
from fleetwatch.alerts.routes import RouteRule
from fleetwatch.alerts.stats import NotificationStats
from fleetwatch.core.types import CheckResultEvent

logger = structlog.get_logger(__name__)


class NotificationDispatcher:
    """Routes a notify-worthy event to notifiers.

    - For every rule whose ``match`` succeeds, every notifier whose name
      satisfies the rule's notifier glob is invoked, in rule order.
    - A notifier matched by several rules is invoked once per rule.
    - A notifier that raises is logged and counted as failed; the remaining
      notifiers still run. Delivery is best-effort: the caller's state has
      already been committed and is never rolled back.
    """

    def __init__(
        self,
        notifiers: list[Notifier] | None = None,
        stats: NotificationStats | None = None,
    ) -> None:
        self._notifiers: list[Notifier] = notifiers or []
        self._stats = stats or NotificationStats()

    @property
    def notifiers(self) -> list[Notifier]:
        return list(self._notifiers)

    @property
    def stats(self) -> NotificationStats:
        return self._stats

    async def dispatch(self, event: CheckResultEvent, routes: Sequence[RouteRule]) -> int:
        """Invoke every routed notifier for *event*.

        Returns:
            Number of successful notifier invocations.
        """
        delivered = 0
        for route in routes:
            if not route.match(event):
                continue
            for notifier in self._notifiers:
                if not route.match_notifier(notifier.name):
                    continue
                try:
                    await notifier.notify(event)
                except Exception:
                    self._stats.failed += 1
                    logger.exception(
                        "notifier_dispatch_error",
                        notifier=notifier.name,
                        route=str(route),
                        app_id=event.app_id,
                        check_name=event.check_name,
                    )
                    continue
                self._stats.delivered += 1
                delivered += 1
        return delivered

    # ── Lifecycle ───────────────────────────────────────────────

    async def close(self) -> None:
        for notifier in self._notifiers:
            try:
                await notifier.close()
            except Exception:
                logger.exception("notifier_close_error", notifier=notifier.name)

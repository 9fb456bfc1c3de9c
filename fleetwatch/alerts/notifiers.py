"""Notifiers — structured-log and JSON webhook delivery."""

from __future__ import annotations

import abc

import aiohttp
import structlog

from fleetwatch.alerts.exceptions import NotifierError
from fleetwatch.alerts.labels import WEBHOOK_URL_LABEL, get_list
from fleetwatch.core.config import WebhookNotifierConfig
from fleetwatch.core.types import CheckResultEvent

logger = structlog.get_logger(__name__)

# Logger used by LogNotifier for the notifications themselves.
notification_logger = structlog.get_logger("notifications")


class Notifier(abc.ABC):
    """Base class for notification delivery.

    ``name`` is what the notifier glob of a route rule is matched against.
    """

    @property
    @abc.abstractmethod
    def name(self) -> str:
        """Name used for route matching (e.g. ``"webhook"``)."""

    @abc.abstractmethod
    async def notify(self, event: CheckResultEvent) -> None:
        """Deliver a notification for *event*. Raises on delivery failure."""

    async def close(self) -> None:
        """Release resources (HTTP sessions, etc.)."""


class LogNotifier(Notifier):
    """Writes each notification to the ``notifications`` structured log."""

    @property
    def name(self) -> str:
        return "log"

    async def notify(self, event: CheckResultEvent) -> None:
        notification_logger.warning(
            "notification",
            app_id=event.app_id,
            check_name=event.check_name,
            result=event.severity.label,
            times=event.times,
            message=event.message,
        )


class WebhookNotifier(Notifier):
    """POSTs each notification as a JSON document to one or more webhooks.

    Applications can redirect their notifications with the
    ``alerts.webhook.url`` label (comma list of URLs).
    """

    def __init__(self, config: WebhookNotifierConfig) -> None:
        self._urls = ",".join(url.get_secret_value() for url in config.urls)
        self._timeout = aiohttp.ClientTimeout(total=config.timeout_secs)
        self._session: aiohttp.ClientSession | None = None

    @property
    def name(self) -> str:
        return "webhook"

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self._session

    async def notify(self, event: CheckResultEvent) -> None:
        urls = get_list(event.labels, WEBHOOK_URL_LABEL, self._urls)
        if not urls:
            logger.warning(
                "webhook_no_destination",
                app_id=event.app_id,
                check_name=event.check_name,
            )
            return

        payload = _build_payload(event)
        failures = 0
        session = self._get_session()
        for url in urls:
            try:
                async with session.post(url, json=payload) as resp:
                    if 200 <= resp.status < 300:
                        continue
                    body = await resp.text()
                    failures += 1
                    logger.warning(
                        "webhook_send_failed",
                        status=resp.status,
                        body=body[:200],
                    )
            except (aiohttp.ClientError, TimeoutError):
                failures += 1
                logger.exception("webhook_send_error", app_id=event.app_id)

        if failures:
            raise NotifierError(
                f"webhook delivery failed for {failures} of {len(urls)} destination(s)"
            )

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None


def _build_payload(event: CheckResultEvent) -> dict[str, object]:
    return {
        "app": event.app_id,
        "check": event.check_name,
        "result": event.severity.label,
        "times": event.times,
        "message": event.message,
        "timestamp": event.timestamp,
    }

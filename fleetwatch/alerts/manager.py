"""AlertManager — suppression / escalation state machine and sweep loop.

For every check result the manager decides whether to notify, and keeps two
maps of state:

- suppression entries keyed by ``(app_id, check_name, severity)`` holding the
  timestamp of the last notification for that triple;
- escalation counters keyed by ``(app_id, check_name)`` holding the number
  of consecutive non-pass notifications since the last resolution.

Transitions, first match wins:

==============================  =========  ==============================
existing entry                  severity   outcome
==============================  =========  ==============================
yes                             PASS       RESOLUTION (notify as RESOLVED)
yes, different severity         non-PASS   ESCALATION
yes, same severity              non-PASS   SUPPRESSED
no                              non-PASS   NEW_FAILURE
no                              PASS       HEALTHY (drop counter)
==============================  =========  ==============================

Both maps are only touched under ``self._lock``. Notifiers are invoked while
the lock is held, so a slow notifier delays every later event and sweep.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from enum import StrEnum

import structlog

from fleetwatch.alerts.dispatcher import NotificationDispatcher
from fleetwatch.alerts.exceptions import InvariantViolationError, RouteParseError
from fleetwatch.alerts.labels import (
    ALERTS_ENABLED_LABEL,
    APP_ROUTES_LABEL,
    get_bool,
    get_string,
)
from fleetwatch.alerts.routes import RouteRule, parse_routes
from fleetwatch.alerts.stats import NotificationStats
from fleetwatch.core.config import AlertsConfig, get_settings
from fleetwatch.core.types import CHECK_LEVELS, CheckResultEvent, Severity

# Dedicated structured logger for notification decisions.
decision_logger = structlog.get_logger("decision_log")

logger = structlog.get_logger(__name__)

SuppressionKey = tuple[str, str, Severity]
CounterKey = tuple[str, str]

Clock = Callable[[], float]


class Decision(StrEnum):
    """Outcome of processing a single check result."""

    DISABLED = "DISABLED"
    INVALID_ROUTES = "INVALID_ROUTES"
    RESOLUTION = "RESOLUTION"
    ESCALATION = "ESCALATION"
    SUPPRESSED = "SUPPRESSED"
    NEW_FAILURE = "NEW_FAILURE"
    HEALTHY = "HEALTHY"


class AlertManager:
    """Deduplicates, escalates and resolves check results.

    ``process()`` is safe to call from any task; the background loop started
    by ``start()`` is just another caller, draining events handed to
    ``submit()`` and sweeping expired suppression entries every
    ``sweep_interval_secs``.

    Usage::

        manager = AlertManager(dispatcher)
        await manager.start()
        await manager.submit(event)
        # ...
        await manager.stop()
    """

    def __init__(
        self,
        dispatcher: NotificationDispatcher,
        config: AlertsConfig | None = None,
        clock: Clock = time.time,
    ) -> None:
        self._dispatcher = dispatcher
        self._config = config or get_settings().alerts
        self._clock = clock

        self._suppressed: dict[SuppressionKey, float] = {}
        self._counts: dict[CounterKey, int] = {}
        self._lock = asyncio.Lock()

        self._queue: asyncio.Queue[CheckResultEvent] = asyncio.Queue(
            maxsize=self._config.queue_maxsize,
        )
        self._stop_event = asyncio.Event()
        self._task: asyncio.Task[None] | None = None
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    @property
    def stats(self) -> NotificationStats:
        return self._dispatcher.stats

    @property
    def pending(self) -> int:
        """Events submitted but not yet processed by the loop."""
        return self._queue.qsize()

    # ── Introspection ───────────────────────────────────────────

    def suppressed_keys(self) -> list[SuppressionKey]:
        return list(self._suppressed)

    def suppressed_at(self, app_id: str, check_name: str, severity: Severity) -> float | None:
        return self._suppressed.get((app_id, check_name, severity))

    def counter(self, app_id: str, check_name: str) -> int | None:
        return self._counts.get((app_id, check_name))

    # ── Lifecycle ───────────────────────────────────────────────

    async def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._stop_event.clear()
        self._task = asyncio.create_task(self._loop())
        logger.info(
            "alert_manager_started",
            suppress_duration_secs=self._config.suppress_duration_secs,
            sweep_interval_secs=self._config.sweep_interval_secs,
        )

    async def stop(self) -> None:
        """Stop the loop once the in-flight iteration has completed.

        Events still queued are not processed.
        """
        if self._task is None:
            return
        self._running = False
        self._stop_event.set()
        await self._task
        self._task = None
        logger.info("alert_manager_stopped", dropped=self._queue.qsize(), stats=self.stats.snapshot())

    # ── Event intake ────────────────────────────────────────────

    async def submit(self, event: CheckResultEvent) -> None:
        """Queue *event* for the background loop.

        Blocks while a bounded queue is full, including after ``stop()``.
        """
        await self._queue.put(event)

    def submit_nowait(self, event: CheckResultEvent) -> None:
        """Queue *event* without waiting; raises ``asyncio.QueueFull`` when full."""
        self._queue.put_nowait(event)

    async def process(self, event: CheckResultEvent) -> Decision:
        """Run *event* through the state machine and dispatch if warranted.

        Raises:
            InvariantViolationError: If the event carries an unknown severity.
        """
        async with self._lock:
            return await self._process_locked(event)

    # ── Sweep ───────────────────────────────────────────────────

    async def sweep(self, now: float | None = None) -> int:
        """Delete suppression entries older than the suppression window.

        Escalation counters are left alone, so a failure that outlives the
        window is re-notified with an incremented ``times``.

        Returns:
            Number of entries removed.
        """
        async with self._lock:
            now = self._clock() if now is None else now
            window = self._config.suppress_duration_secs
            expired = [key for key, at in self._suppressed.items() if now - at > window]
            for key in expired:
                del self._suppressed[key]
            if expired:
                self.stats.swept += len(expired)
                logger.info("suppressed_alerts_swept", count=len(expired))
            return len(expired)

    # ── Internal ────────────────────────────────────────────────

    async def _process_locked(self, event: CheckResultEvent) -> Decision:
        if not get_bool(event.labels, ALERTS_ENABLED_LABEL, True):
            self.stats.disabled += 1
            logger.info(
                "alerts_disabled",
                app_id=event.app_id,
                check_name=event.check_name,
                label=ALERTS_ENABLED_LABEL,
            )
            return Decision.DISABLED

        spec = get_string(event.labels, APP_ROUTES_LABEL, self._config.default_routes)
        try:
            routes = parse_routes(spec)
        except RouteParseError as exc:
            self.stats.parse_errors += 1
            logger.error(
                "route_parse_error",
                app_id=event.app_id,
                check_name=event.check_name,
                routes=spec,
                error=str(exc),
            )
            return Decision.INVALID_ROUTES

        if event.severity not in _KNOWN_SEVERITIES:
            raise InvariantViolationError(
                f"unknown severity {event.severity!r} for {event.app_id}/{event.check_name}"
            )

        prefix: CounterKey = (event.app_id, event.check_name)
        existing = self._find_active(prefix)

        if existing is not None and event.severity == Severity.PASS:
            times = self._increment(prefix)
            del self._suppressed[(*prefix, existing)]
            del self._counts[prefix]
            outgoing = event.model_copy(update={"severity": Severity.RESOLVED, "times": times})
            decision = Decision.RESOLUTION
        elif existing is not None and existing != event.severity:
            del self._suppressed[(*prefix, existing)]
            self._suppressed[(*prefix, event.severity)] = event.timestamp
            times = self._increment(prefix)
            outgoing = event.model_copy(update={"times": times})
            decision = Decision.ESCALATION
        elif existing is not None:
            self.stats.suppressed += 1
            logger.debug(
                "alert_suppressed",
                app_id=event.app_id,
                check_name=event.check_name,
                severity=event.severity.name,
            )
            return Decision.SUPPRESSED
        elif event.severity != Severity.PASS:
            self._suppressed[(*prefix, event.severity)] = event.timestamp
            times = self._increment(prefix)
            outgoing = event.model_copy(update={"times": times})
            decision = Decision.NEW_FAILURE
        else:
            self._counts.pop(prefix, None)
            return Decision.HEALTHY

        await self._notify(outgoing, routes, decision)
        return decision

    def _find_active(self, prefix: CounterKey) -> Severity | None:
        for level in CHECK_LEVELS:
            if (*prefix, level) in self._suppressed:
                return level
        return None

    def _increment(self, prefix: CounterKey) -> int:
        count = self._counts.get(prefix, 0) + 1
        self._counts[prefix] = count
        return count

    async def _notify(
        self,
        event: CheckResultEvent,
        routes: list[RouteRule],
        decision: Decision,
    ) -> None:
        self.stats.record_notification(event)
        decision_logger.info(
            "decision",
            decision=decision.value,
            app_id=event.app_id,
            check_name=event.check_name,
            severity=event.severity.name,
            times=event.times,
            message=event.message,
        )
        await self._dispatcher.dispatch(event, routes)

    async def _loop(self) -> None:
        loop = asyncio.get_running_loop()
        interval = self._config.sweep_interval_secs
        next_sweep = loop.time() + interval
        while not self._stop_event.is_set():
            event = await self._next_event(max(0.0, next_sweep - loop.time()))
            if event is not None:
                try:
                    await self.process(event)
                except Exception:
                    logger.exception(
                        "process_check_error",
                        app_id=event.app_id,
                        check_name=event.check_name,
                    )

            if loop.time() >= next_sweep:
                try:
                    await self.sweep()
                except Exception:
                    logger.exception("sweep_error")
                next_sweep = loop.time() + interval

    async def _next_event(self, timeout: float) -> CheckResultEvent | None:
        """Wait for a queued event, the stop signal or *timeout*, whichever is first."""
        getter = asyncio.ensure_future(self._queue.get())
        stopper = asyncio.ensure_future(self._stop_event.wait())
        try:
            await asyncio.wait(
                {getter, stopper},
                timeout=timeout,
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            stopper.cancel()
            getter.cancel()
        # Queue.get leaves the item queued when cancelled before it returns.
        if getter.done() and not getter.cancelled():
            return getter.result()
        return None


_KNOWN_SEVERITIES = frozenset(Severity)

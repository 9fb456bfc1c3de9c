"""AppChecker — polls the application inventory and runs subscribed checks."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from types import TracebackType

import structlog

from fleetwatch.alerts.labels import CHECK_SUBSCRIPTION_LABEL, SUBSCRIBE_ALL_CHECKS, get_list
from fleetwatch.checks.base import Checker
from fleetwatch.core.config import get_settings
from fleetwatch.core.types import Application, CheckResultEvent

logger = structlog.get_logger(__name__)

InventoryFn = Callable[[], Awaitable[list[Application]]]
EventSink = Callable[[CheckResultEvent], Awaitable[None] | None]


def subscribed_checks(app: Application) -> set[str]:
    """Names of the checks *app* subscribes to (``all`` by default)."""
    return set(get_list(app.labels, CHECK_SUBSCRIPTION_LABEL, SUBSCRIBE_ALL_CHECKS))


class AppChecker:
    """Background producer of check results.

    Every ``check_interval_secs`` the inventory is fetched and each
    application is run through every checker it subscribes to via the
    ``alerts.checks.subscribe`` label. Results go to *sink*, typically
    ``AlertManager.submit``.

    Usage::

        checker = AppChecker(inventory_fn, [MyCheck()], manager.submit)
        async with checker:
            await asyncio.sleep(600)
    """

    def __init__(
        self,
        inventory_fn: InventoryFn,
        checkers: list[Checker],
        sink: EventSink,
        check_interval_secs: float | None = None,
    ) -> None:
        self._inventory_fn = inventory_fn
        self._checkers = checkers
        self._sink = sink
        self._interval = (
            check_interval_secs
            if check_interval_secs is not None
            else get_settings().checker.check_interval_secs
        )
        self._task: asyncio.Task[None] | None = None
        self._running = False
        self._error_count = 0

    @property
    def running(self) -> bool:
        return self._running

    @property
    def error_count(self) -> int:
        return self._error_count

    async def run_once(self) -> list[CheckResultEvent]:
        """Fetch the inventory once, run subscribed checks and emit results."""
        apps = await self._inventory_fn()
        results: list[CheckResultEvent] = []
        for app in apps:
            subscribed = subscribed_checks(app)
            for checker in self._checkers:
                if checker.name not in subscribed and SUBSCRIBE_ALL_CHECKS not in subscribed:
                    continue
                try:
                    result = checker.check(app)
                except Exception:
                    self._error_count += 1
                    logger.exception("check_error", app_id=app.app_id, check_name=checker.name)
                    continue
                results.append(result)
                await self._emit(result)
        logger.debug("check_pass_completed", apps=len(apps), results=len(results))
        return results

    async def _emit(self, event: CheckResultEvent) -> None:
        try:
            result = self._sink(event)
            if asyncio.iscoroutine(result):
                await result
        except Exception:
            logger.exception(
                "check_sink_error",
                app_id=event.app_id,
                check_name=event.check_name,
            )

    async def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._task = asyncio.create_task(self._loop())
        logger.info("app_checker_started", check_interval_secs=self._interval)

    async def stop(self) -> None:
        self._running = False
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("app_checker_stopped")

    async def _loop(self) -> None:
        while self._running:
            try:
                await asyncio.sleep(self._interval)
                await self.run_once()
            except asyncio.CancelledError:
                break
            except Exception:
                self._error_count += 1
                logger.exception("inventory_poll_error", error_count=self._error_count)

    async def __aenter__(self) -> AppChecker:
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.stop()

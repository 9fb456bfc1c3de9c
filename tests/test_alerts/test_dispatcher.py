"""Tests for NotificationDispatcher — route fan-out, error isolation, lifecycle."""

from __future__ import annotations

from fleetwatch.alerts.dispatcher import NotificationDispatcher
from fleetwatch.alerts.notifiers import Notifier
from fleetwatch.alerts.routes import parse_routes
from fleetwatch.core.types import CheckResultEvent, Severity

# ── Helpers ─────────────────────────────────────────────────────


class FakeNotifier(Notifier):
    """In-memory notifier for testing."""

    def __init__(self, name: str = "fake", fail: bool = False) -> None:
        self._name = name
        self._fail = fail
        self.sent: list[CheckResultEvent] = []
        self.closed = False

    @property
    def name(self) -> str:
        return self._name

    async def notify(self, event: CheckResultEvent) -> None:
        if self._fail:
            raise ConnectionError("fake error")
        self.sent.append(event)

    async def close(self) -> None:
        self.closed = True


def _event(
    check_name: str = "min-healthy",
    severity: Severity = Severity.WARNING,
) -> CheckResultEvent:
    return CheckResultEvent(app_id="/foo", check_name=check_name, severity=severity, times=1)


# ── Routing ─────────────────────────────────────────────────────


class TestRouting:
    async def test_wildcard_route_reaches_every_notifier(self) -> None:
        slack = FakeNotifier("slack")
        hook = FakeNotifier("webhook")
        disp = NotificationDispatcher(notifiers=[slack, hook])
        delivered = await disp.dispatch(_event(), parse_routes("*/warning/*"))
        assert delivered == 2
        assert len(slack.sent) == 1
        assert len(hook.sent) == 1

    async def test_specific_route_reaches_named_notifier_only(self) -> None:
        slack = FakeNotifier("slack")
        hook = FakeNotifier("webhook")
        disp = NotificationDispatcher(notifiers=[slack, hook])
        routes = parse_routes("min-healthy/critical/slack")

        await disp.dispatch(_event("min-healthy", Severity.CRITICAL), routes)
        assert len(slack.sent) == 1
        assert hook.sent == []

    async def test_specific_route_ignores_other_checks(self) -> None:
        slack = FakeNotifier("slack")
        disp = NotificationDispatcher(notifiers=[slack])
        routes = parse_routes("min-healthy/critical/slack")

        await disp.dispatch(_event("suspended", Severity.CRITICAL), routes)
        await disp.dispatch(_event("min-healthy", Severity.WARNING), routes)
        assert slack.sent == []

    async def test_every_matching_rule_fires(self) -> None:
        slack = FakeNotifier("slack")
        disp = NotificationDispatcher(notifiers=[slack])
        routes = parse_routes("*/warning/*;min-*/warning/slack")

        delivered = await disp.dispatch(_event(), routes)
        assert delivered == 2
        assert len(slack.sent) == 2

    async def test_no_matching_rule(self) -> None:
        slack = FakeNotifier("slack")
        disp = NotificationDispatcher(notifiers=[slack])
        delivered = await disp.dispatch(_event(severity=Severity.RESOLVED), parse_routes("*/warning/*"))
        assert delivered == 0
        assert slack.sent == []

    async def test_no_notifiers(self) -> None:
        disp = NotificationDispatcher()
        assert await disp.dispatch(_event(), parse_routes("*/warning/*")) == 0


# ── Error isolation ─────────────────────────────────────────────


class TestNotifierErrors:
    async def test_failure_does_not_propagate(self) -> None:
        disp = NotificationDispatcher(notifiers=[FakeNotifier(fail=True)])
        delivered = await disp.dispatch(_event(), parse_routes("*/warning/*"))
        assert delivered == 0
        assert disp.stats.failed == 1

    async def test_one_failure_does_not_block_others(self) -> None:
        bad = FakeNotifier("bad", fail=True)
        good = FakeNotifier("good")
        disp = NotificationDispatcher(notifiers=[bad, good])
        await disp.dispatch(_event(), parse_routes("*/warning/*"))
        assert len(good.sent) == 1
        assert disp.stats.delivered == 1
        assert disp.stats.failed == 1


# ── Lifecycle ───────────────────────────────────────────────────


class TestLifecycle:
    async def test_close_notifiers(self) -> None:
        n1 = FakeNotifier("a")
        n2 = FakeNotifier("b")
        disp = NotificationDispatcher(notifiers=[n1, n2])
        await disp.close()
        assert n1.closed
        assert n2.closed

    async def test_close_empty(self) -> None:
        await NotificationDispatcher().close()

    def test_notifiers_property_is_a_copy(self) -> None:
        n1 = FakeNotifier("a")
        disp = NotificationDispatcher(notifiers=[n1])
        disp.notifiers.append(FakeNotifier("b"))
        assert disp.notifiers == [n1]

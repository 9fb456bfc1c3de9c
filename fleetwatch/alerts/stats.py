"""NotificationStats — counters for engine decisions and deliveries."""

from __future__ import annotations

from dataclasses import asdict, dataclass

from fleetwatch.alerts.exceptions import InvariantViolationError
from fleetwatch.core.types import CheckResultEvent, Severity


@dataclass
class NotificationStats:
    """Running totals kept by the alert manager and the dispatcher.

    Usage::

        stats = manager.stats
        stats.snapshot()["critical"]
    """

    total: int = 0
    warning: int = 0
    critical: int = 0
    resolved: int = 0
    passed: int = 0
    suppressed: int = 0
    swept: int = 0
    parse_errors: int = 0
    disabled: int = 0
    delivered: int = 0
    failed: int = 0

    def record_notification(self, event: CheckResultEvent) -> None:
        """Count a dispatched notification by its (possibly rewritten) severity.

        Raises:
            InvariantViolationError: If the severity is not one of the four
                known severities. The engine must never dispatch such an event.
        """
        severity = event.severity
        if severity == Severity.WARNING:
            self.warning += 1
        elif severity == Severity.CRITICAL:
            self.critical += 1
        elif severity == Severity.RESOLVED:
            self.resolved += 1
        elif severity == Severity.PASS:
            # The alert manager never dispatches PASS; kept so every known severity counts.
            self.passed += 1
        else:
            raise InvariantViolationError(
                f"cannot count notification with severity {severity!r} "
                f"for {event.app_id}/{event.check_name}"
            )
        self.total += 1

    def snapshot(self) -> dict[str, int]:
        return asdict(self)

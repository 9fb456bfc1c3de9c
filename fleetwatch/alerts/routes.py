"""Route table — decides which notifiers receive which (check, severity) pairs.

A routing specification is a ``;``-separated list of segments, each of the
form ``check-glob/severity/notifier-glob``::

    min-healthy/critical/slack;*/warning/*

Every rule that matches an event fires; order is kept only for iteration.
"""

from __future__ import annotations

from dataclasses import dataclass

from fleetwatch.alerts.exceptions import RouteParseError
from fleetwatch.core.config import DEFAULT_ROUTES
from fleetwatch.core.types import CheckResultEvent, Severity

__all__ = [
    "DEFAULT_ROUTES",
    "RouteRule",
    "glob_match",
    "parse_routes",
]


def glob_match(pattern: str, value: str) -> bool:
    """Match *value* against *pattern* where ``*`` matches any substring.

    Every other character is literal and matching is case-sensitive.
    """
    if pattern == "*":
        return True

    parts = pattern.split("*")
    if len(parts) == 1:
        return pattern == value

    head, *middle, tail = parts
    if not value.startswith(head):
        return False
    if len(value) - len(head) < len(tail) or not value.endswith(tail):
        return False

    pos = len(head)
    end = len(value) - len(tail)
    for part in middle:
        idx = value.find(part, pos, end)
        if idx < 0:
            return False
        pos = idx + len(part)
    return True


@dataclass(frozen=True)
class RouteRule:
    """A single ``check/severity/notifier`` routing rule."""

    check_pattern: str
    severity: Severity
    notifier_pattern: str

    def match(self, event: CheckResultEvent) -> bool:
        return glob_match(self.check_pattern, event.check_name) and self.severity == event.severity

    def match_notifier(self, notifier_name: str) -> bool:
        return glob_match(self.notifier_pattern, notifier_name)

    def __str__(self) -> str:
        return f"{self.check_pattern}/{self.severity.name.lower()}/{self.notifier_pattern}"


def parse_routes(spec: str) -> list[RouteRule]:
    """Parse a routing specification into an ordered list of rules.

    Args:
        spec: ``segment (";" segment)*`` with an optional trailing ``;``.

    Returns:
        Rules in input order.

    Raises:
        RouteParseError: If the spec is empty, a segment does not have
            exactly three non-empty ``/``-separated parts, or a severity
            keyword is unknown.
    """
    rules: list[RouteRule] = []
    for segment in spec.split(";"):
        # A trailing ";" leaves an empty segment; an empty spec does not get a pass.
        if spec and not segment:
            continue
        tokens = segment.split("/")
        if len(tokens) != 3:
            raise RouteParseError(
                f"expected 3 parts in {segment!r}, separated by '/', but {len(tokens)} found"
            )
        if not all(tokens):
            raise RouteParseError(f"empty part in route {segment!r}")
        check_pattern, keyword, notifier_pattern = tokens
        try:
            severity = Severity.parse(keyword)
        except ValueError as exc:
            raise RouteParseError(f"invalid severity in route {segment!r}: {exc}") from exc
        rules.append(RouteRule(check_pattern, severity, notifier_pattern))
    return rules

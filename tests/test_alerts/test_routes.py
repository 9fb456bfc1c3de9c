"""Tests for the route table — parsing, glob matching, rule matching."""

from __future__ import annotations

import pytest

from fleetwatch.alerts.exceptions import RouteParseError
from fleetwatch.alerts.routes import DEFAULT_ROUTES, RouteRule, glob_match, parse_routes
from fleetwatch.core.types import CheckResultEvent, Severity


def _event(check_name: str = "min-healthy", severity: Severity = Severity.WARNING) -> CheckResultEvent:
    return CheckResultEvent(app_id="/foo", check_name=check_name, severity=severity)


# ── Parsing ─────────────────────────────────────────────────────


class TestParseRoutes:
    def test_single_route(self) -> None:
        rules = parse_routes("check/warning/notifier")
        assert rules == [RouteRule("check", Severity.WARNING, "notifier")]

    def test_trailing_semicolon_ignored(self) -> None:
        rules = parse_routes("check/warning/notifier;")
        assert rules == [RouteRule("check", Severity.WARNING, "notifier")]

    def test_empty_string_is_error(self) -> None:
        with pytest.raises(RouteParseError):
            parse_routes("")

    def test_multiple_routes_keep_order(self) -> None:
        rules = parse_routes("a/warning/x;b/critical/y;c/resolved/z")
        assert [r.check_pattern for r in rules] == ["a", "b", "c"]
        assert [r.severity for r in rules] == [Severity.WARNING, Severity.CRITICAL, Severity.RESOLVED]
        assert [r.notifier_pattern for r in rules] == ["x", "y", "z"]

    def test_invalid_severity(self) -> None:
        with pytest.raises(RouteParseError, match="not-a-severity"):
            parse_routes("check/not-a-severity/notifier")

    def test_severity_case_insensitive(self) -> None:
        rules = parse_routes("a/WARNING/x;b/Critical/y;c/pAsS/z;d/RESOLVED/w")
        assert [r.severity for r in rules] == [
            Severity.WARNING,
            Severity.CRITICAL,
            Severity.PASS,
            Severity.RESOLVED,
        ]

    @pytest.mark.parametrize("spec", ["check/warning", "check/warning/notifier/extra", "check"])
    def test_wrong_token_count(self, spec: str) -> None:
        with pytest.raises(RouteParseError, match="expected 3 parts"):
            parse_routes(spec)

    def test_error_names_offending_segment(self) -> None:
        with pytest.raises(RouteParseError, match="bad/route"):
            parse_routes("*/warning/*;bad/route")

    @pytest.mark.parametrize("spec", ["/warning/slack", "check//slack", "check/warning/"])
    def test_empty_token_is_error(self, spec: str) -> None:
        with pytest.raises(RouteParseError):
            parse_routes(spec)

    def test_empty_middle_segment_skipped(self) -> None:
        rules = parse_routes("a/warning/x;;b/critical/y")
        assert len(rules) == 2

    def test_parse_error_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            parse_routes("nope")

    def test_default_routes(self) -> None:
        rules = parse_routes(DEFAULT_ROUTES)
        assert rules == [
            RouteRule("*", Severity.WARNING, "*"),
            RouteRule("*", Severity.CRITICAL, "*"),
            RouteRule("*", Severity.RESOLVED, "*"),
        ]

    def test_str_round_trips_segment(self) -> None:
        rule = parse_routes("min-*/Critical/slack")[0]
        assert str(rule) == "min-*/critical/slack"


# ── Glob ────────────────────────────────────────────────────────


class TestGlobMatch:
    @pytest.mark.parametrize(
        ("pattern", "value"),
        [
            ("*", ""),
            ("*", "anything"),
            ("slack", "slack"),
            ("min-*", "min-healthy"),
            ("*-healthy", "min-healthy"),
            ("m*y", "min-healthy"),
            ("m*-*y", "min-healthy"),
            ("min-*", "min-"),
            ("**", "x"),
            ("a*b*c", "abc"),
        ],
    )
    def test_matches(self, pattern: str, value: str) -> None:
        assert glob_match(pattern, value)

    @pytest.mark.parametrize(
        ("pattern", "value"),
        [
            ("slack", "Slack"),
            ("slack", "slack2"),
            ("min-*", "max-healthy"),
            ("*-healthy", "min-healthz"),
            ("a*a", "a"),
            ("a*b*c", "acb"),
            ("?", "a"),
            ("[ab]", "a"),
        ],
    )
    def test_does_not_match(self, pattern: str, value: str) -> None:
        assert not glob_match(pattern, value)


# ── Rule matching ───────────────────────────────────────────────


class TestRouteMatch:
    def test_wildcard_warning_matches_any_check(self) -> None:
        rule = RouteRule("*", Severity.WARNING, "*")
        assert rule.match(_event("min-healthy"))
        assert rule.match(_event("suspended"))

    def test_severity_must_match(self) -> None:
        rule = RouteRule("*", Severity.WARNING, "*")
        assert not rule.match(_event("min-healthy", Severity.CRITICAL))

    def test_specific_check(self) -> None:
        rule = RouteRule("min-healthy", Severity.CRITICAL, "slack")
        assert rule.match(_event("min-healthy", Severity.CRITICAL))
        assert not rule.match(_event("min-instances", Severity.CRITICAL))

    def test_match_notifier(self) -> None:
        rule = RouteRule("min-healthy", Severity.CRITICAL, "slack")
        assert rule.match_notifier("slack")
        assert not rule.match_notifier("webhook")
        assert RouteRule("*", Severity.WARNING, "*").match_notifier("webhook")

"""Shared vocabulary of check results — severities, events, applications."""

from __future__ import annotations

import time
from enum import IntEnum

from pydantic import BaseModel, Field


class Severity(IntEnum):
    """Classification of a single check result.

    Values are stable identifiers, not a priority ordering. ``RESOLVED`` is
    never produced by a checker; the alert manager assigns it when a failing
    check starts passing again.
    """

    CRITICAL = 1
    WARNING = 2
    RESOLVED = 98
    PASS = 99

    @classmethod
    def parse(cls, keyword: str) -> Severity:
        """Parse a case-insensitive severity keyword (``warning``, ``critical``...)."""
        try:
            return _KEYWORDS[keyword.lower()]
        except KeyError:
            raise ValueError(
                f"expected one of warning / critical / pass / resolved but {keyword.lower()!r} found"
            ) from None

    @property
    def label(self) -> str:
        return _LABELS[self]


_KEYWORDS: dict[str, Severity] = {
    "warning": Severity.WARNING,
    "critical": Severity.CRITICAL,
    "pass": Severity.PASS,
    "resolved": Severity.RESOLVED,
}

_LABELS: dict[Severity, str] = {
    Severity.CRITICAL: "Critical",
    Severity.WARNING: "Warning",
    Severity.RESOLVED: "Resolved",
    Severity.PASS: "Passed",
}

# Active-failure severities in suppression lookup order.
CHECK_LEVELS: tuple[Severity, ...] = (Severity.WARNING, Severity.CRITICAL)


class CheckResultEvent(BaseModel):
    """One observation of one check against one application."""

    app_id: str
    check_name: str
    severity: Severity
    message: str = ""
    timestamp: float = Field(default_factory=time.time)
    labels: dict[str, str] = Field(default_factory=dict)
    times: int = 0


class Application(BaseModel):
    """Inventory entry handed to checkers by the check producer."""

    app_id: str
    labels: dict[str, str] = Field(default_factory=dict)

"""Checker interface — one pluggable check run against one application."""

from __future__ import annotations

import abc

from fleetwatch.core.types import Application, CheckResultEvent


class Checker(abc.ABC):
    """Base class for application checks.

    Subclasses return a ``CheckResultEvent`` whose ``check_name`` is
    ``self.name`` and whose ``labels`` are the application's labels, so the
    alert manager can honour per-application overrides.
    """

    @property
    @abc.abstractmethod
    def name(self) -> str:
        """Check name used for subscriptions and route matching."""

    @abc.abstractmethod
    def check(self, app: Application) -> CheckResultEvent:
        """Evaluate *app* and return the result."""

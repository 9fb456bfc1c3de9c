#!/usr/bin/env python3
"""Alerting entrypoint — feeds check results to the alert manager.

Check results are read as JSON lines (one ``CheckResultEvent`` per line,
``severity`` as a number or a keyword such as ``"warning"``) from a file or
stdin. The manager deduplicates, escalates and routes them to the enabled
notifiers until input is exhausted or a shutdown signal arrives.

Usage::

    # Read events from stdin with the default config
    some-producer | python scripts/run.py

    # Custom config file and event file
    python scripts/run.py --config config/settings.yaml --events checks.jsonl

    # Override log level
    python scripts/run.py --log-level DEBUG
"""

from __future__ import annotations

import argparse
import asyncio
import json
import os
import signal
import sys
from typing import IO, Any

# Ensure project root is on sys.path so `fleetwatch` is importable from a checkout.
_PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _PROJECT_ROOT not in sys.path:
    sys.path.insert(0, _PROJECT_ROOT)

import structlog

from fleetwatch.alerts.factory import create_alert_stack
from fleetwatch.alerts.manager import AlertManager
from fleetwatch.core.config import load_settings
from fleetwatch.core.logging import setup_logging
from fleetwatch.core.types import CheckResultEvent, Severity

logger = structlog.get_logger(__name__)


def parse_event_line(line: str) -> CheckResultEvent:
    """Parse one JSON line into a ``CheckResultEvent``.

    Raises:
        ValueError: On malformed JSON, an unknown severity keyword or a
            payload that fails validation.
    """
    data: Any = json.loads(line)
    if not isinstance(data, dict):
        raise ValueError("event line must be a JSON object")
    severity = data.get("severity")
    if isinstance(severity, str):
        data["severity"] = Severity.parse(severity)
    return CheckResultEvent.model_validate(data)


async def feed_events(manager: AlertManager, stream: IO[str]) -> int:
    """Submit every valid event line from *stream*; returns the count submitted."""
    submitted = 0
    while True:
        line = await asyncio.to_thread(stream.readline)
        if not line:
            break
        line = line.strip()
        if not line:
            continue
        try:
            event = parse_event_line(line)
        except ValueError as exc:
            logger.warning("invalid_event_line", error=str(exc), line=line[:200])
            continue
        await manager.submit(event)
        submitted += 1
    return submitted


async def run(args: argparse.Namespace) -> int:
    """Start the alerting stack and run until input ends or interrupted."""
    settings = load_settings(args.config)
    setup_logging(level=args.log_level)

    manager, dispatcher = create_alert_stack(settings)
    if not dispatcher.notifiers:
        logger.error("no_notifiers_enabled")
        print(
            "No notifiers enabled. Enable at least one notifier in config/settings.yaml "
            "(notifiers.log.enabled or notifiers.webhook.enabled).",
            file=sys.stderr,
        )
        return 1

    logger.info(
        "alerts_starting",
        notifiers=[n.name for n in dispatcher.notifiers],
        default_routes=settings.alerts.default_routes,
    )

    stream = sys.stdin if args.events == "-" else open(args.events)
    await manager.start()

    # ── Wait for end of input or a shutdown signal ───────────────
    stop_event = asyncio.Event()

    def _signal_handler() -> None:
        logger.info("shutdown_signal_received")
        stop_event.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _signal_handler)
        except NotImplementedError:
            # Windows: signal handlers not supported on ProactorEventLoop
            pass

    feeder = asyncio.create_task(feed_events(manager, stream))
    stopper = asyncio.create_task(stop_event.wait())
    await asyncio.wait({feeder, stopper}, return_when=asyncio.FIRST_COMPLETED)

    if feeder.done() and not stop_event.is_set():
        logger.info("input_exhausted", submitted=feeder.result())
        while manager.pending and not stop_event.is_set():
            await asyncio.sleep(0.05)
    stopper.cancel()

    # ── Graceful shutdown ────────────────────────────────────────
    logger.info("alerts_shutting_down")
    await manager.stop()
    await dispatcher.close()
    # TODO: a stdin read parked in its worker thread still delays interpreter
    # exit until the next line or EOF arrives.
    if not feeder.done():
        feeder.cancel()
    if stream is not sys.stdin:
        stream.close()

    logger.info("alerts_stopped", **manager.stats.snapshot())
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Deduplicate, escalate and route application check results.",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to settings YAML (default: config/settings.yaml)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level override: DEBUG, INFO, WARNING, ERROR",
    )
    parser.add_argument(
        "--events",
        default="-",
        help="JSON-lines file of check results, '-' for stdin (default)",
    )
    args = parser.parse_args()

    code = asyncio.run(run(args))
    sys.exit(code)


if __name__ == "__main__":
    main()

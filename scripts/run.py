#!/usr/bin/env python3
"""Monitor entrypoint — wires the database and Redis probes and runs the loop.

Usage::

    # Run with default config
    python scripts/run.py

    # Custom config file
    python scripts/run.py --config config/settings.yaml

    # Override log level
    python scripts/run.py --log-level DEBUG
"""

from __future__ import annotations

import argparse
import asyncio
import signal
import sys

import redis.asyncio as aioredis
import structlog
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from storewatch.core.config import load_settings
from storewatch.core.logging import setup_logging
from storewatch.monitor.probes import SQLAlchemyProbe
from storewatch.monitor.registry import initialize, shutdown

logger = structlog.get_logger(__name__)


async def run(args: argparse.Namespace) -> int:
    """Start the monitor and run until interrupted."""
    settings = load_settings(args.config)
    setup_logging(level=args.log_level)

    logger.info(
        "monitor_process_starting",
        service=settings.monitoring.service_name,
        database=settings.database.enabled,
        redis=settings.redis.enabled,
    )

    # ── Collaborators ────────────────────────────────────────────
    engine: AsyncEngine | None = None
    probe: SQLAlchemyProbe | None = None
    if settings.database.enabled:
        engine = create_async_engine(
            settings.database.url.get_secret_value(),
            pool_pre_ping=settings.database.pool_pre_ping,
        )
        probe = SQLAlchemyProbe(engine)

    cache: aioredis.Redis | None = None
    if settings.redis.enabled:
        cache = aioredis.from_url(
            settings.redis.url.get_secret_value(),
            decode_responses=True,
        )

    # ── Monitor ──────────────────────────────────────────────────
    monitor = await initialize(settings, database=probe, cache=cache)

    # Report dependency state right away instead of after the first interval.
    report = await monitor.check_now()
    logger.info(
        "monitor_running",
        status=report.status.value,
        database=report.metrics.database_health,
        redis=report.metrics.redis_health,
    )

    # ── Wait for shutdown signal ─────────────────────────────────
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

    try:
        await stop_event.wait()
    except KeyboardInterrupt:
        logger.info("keyboard_interrupt")

    # ── Graceful shutdown ────────────────────────────────────────
    logger.info("monitor_process_shutting_down")
    await shutdown()

    if cache is not None:
        await cache.aclose()
    if engine is not None:
        await engine.dispose()

    logger.info(
        "monitor_process_stopped",
        active_alerts=len(monitor.get_alerts()),
        ticks=monitor.tick_count,
    )
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Run the ecommerce API monitoring loop.",
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
    args = parser.parse_args()

    code = asyncio.run(run(args))
    sys.exit(code)


if __name__ == "__main__":
    main()

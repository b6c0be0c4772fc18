"""Process-wide Monitor instance and package-level shortcuts.

Startup code calls :func:`initialize` once with the real collaborators;
everything else (middleware, handlers) uses :func:`get_monitor` or the
module-level shortcuts, which all delegate to the same instance.
"""

from __future__ import annotations

import threading
from typing import Any

import structlog

from storewatch.core.config import Settings, get_settings
from storewatch.monitor.error_metrics import get_error_metrics
from storewatch.monitor.monitor import ErrorMetricsFn, HealthProbe, Monitor
from storewatch.monitor.probes import AlertCache, DatabaseProbe
from storewatch.monitor.types import Alert, AlertLevel, HealthCheck, SystemMetrics

logger = structlog.stdlib.get_logger()

_monitor: Monitor | None = None
_initialized = False
_lock = threading.Lock()


def _monitor_kwargs(
    settings: Settings | None,
    database: DatabaseProbe | None,
    cache: AlertCache | None,
    error_metrics_fn: ErrorMetricsFn | None,
) -> dict[str, Any]:
    settings = settings or get_settings()
    return {
        "config": settings.monitoring,
        "database": database,
        "cache": cache,
        "error_metrics_fn": error_metrics_fn,
        "database_enabled": settings.database.enabled,
        "cache_enabled": settings.redis.enabled,
    }


async def initialize(
    settings: Settings | None = None,
    *,
    database: DatabaseProbe | None = None,
    cache: AlertCache | None = None,
    error_metrics_fn: ErrorMetricsFn | None = get_error_metrics,
) -> Monitor:
    """Construct the process-wide monitor once and start its loop.

    A monitor built earlier by :func:`get_monitor` is configured in place
    with these arguments, keeping any alerts it already holds. Later calls
    return the existing instance; their arguments are ignored and the loop
    is never started twice.

    Raises:
        MonitorError: if a lazily built monitor was started directly.
    """
    global _monitor, _initialized  # noqa: PLW0603
    with _lock:
        if _initialized:
            if database is not None or cache is not None:
                logger.warning("monitor_already_initialized")
        else:
            kwargs = _monitor_kwargs(settings, database, cache, error_metrics_fn)
            if _monitor is None:
                _monitor = Monitor(**kwargs)
            else:
                _monitor.configure(**kwargs)
            _initialized = True
            logger.info(
                "monitor_initialized",
                service=kwargs["config"].service_name,
                database=database is not None,
                cache=cache is not None,
            )
        monitor = _monitor
    await monitor.start()
    return monitor


def get_monitor() -> Monitor:
    """Return the process-wide monitor, building an unstarted one if needed."""
    global _monitor  # noqa: PLW0603
    if _monitor is None:
        with _lock:
            if _monitor is None:
                _monitor = Monitor(**_monitor_kwargs(None, None, None, get_error_metrics))
    return _monitor


async def shutdown() -> None:
    """Stop the background loop of the process-wide monitor, if any."""
    if _monitor is not None:
        await _monitor.stop()


def reset_monitor() -> None:
    """Forget the process-wide monitor (useful for testing)."""
    global _monitor, _initialized  # noqa: PLW0603
    with _lock:
        _monitor = None
        _initialized = False


# ── Shortcuts ───────────────────────────────────────────────────


def create_alert(
    level: AlertLevel,
    title: str,
    message: str,
    metadata: dict[str, Any] | None = None,
) -> Alert:
    return get_monitor().create_alert(level, title, message, metadata)


def resolve_alert(alert_id: str) -> Alert:
    return get_monitor().resolve_alert(alert_id)


def get_alerts() -> list[Alert]:
    return get_monitor().get_alerts()


def get_all_alerts() -> list[Alert]:
    return get_monitor().get_all_alerts()


def get_metrics() -> SystemMetrics:
    return get_monitor().get_metrics()


def update_metrics(
    request_count: int,
    error_count: int,
    avg_response_time_secs: float,
    active_users: int,
) -> None:
    get_monitor().update_metrics(
        request_count, error_count, avg_response_time_secs, active_users,
    )


async def run_health_check(name: str, probe: HealthProbe) -> HealthCheck:
    return await get_monitor().run_health_check(name, probe)

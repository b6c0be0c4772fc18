"""Monitor — alert store, metrics snapshot, health checks, background loop.

The synchronous operations (alerts, metrics) are safe to call from request
handler threads as well as from the event loop: the alert map and the
metrics snapshot each sit behind their own lock, and those locks are only
held for in-memory work. Cache persistence runs as detached asyncio tasks
so the write path never waits on Redis.
"""

from __future__ import annotations

import asyncio
import inspect
import secrets
import threading
import time
from collections.abc import Awaitable, Callable
from typing import Any

import structlog

from storewatch.core.config import MonitoringConfig
from storewatch.monitor.error_metrics import get_error_metrics
from storewatch.monitor.exceptions import AlertNotFoundError, MonitorError
from storewatch.monitor.probes import (
    AlertCache,
    DatabaseProbe,
    cache_check,
    database_check,
)
from storewatch.monitor.types import (
    Alert,
    AlertLevel,
    ErrorMetrics,
    HealthCheck,
    HealthReport,
    HealthStatus,
    SystemMetrics,
)

logger = structlog.stdlib.get_logger()

HealthProbe = Callable[[], Awaitable[str] | str]
ErrorMetricsFn = Callable[[], ErrorMetrics]

DATABASE_CHECK = "database"
REDIS_CHECK = "redis"

_LOG_METHOD: dict[AlertLevel, str] = {
    AlertLevel.INFO: "info",
    AlertLevel.WARNING: "warning",
    AlertLevel.CRITICAL: "error",
}


def generate_alert_id() -> str:
    return f"alert-{time.time_ns()}-{secrets.token_hex(4)}"


class Monitor:
    """Process-wide monitoring state.

    Usage::

        monitor = Monitor(settings.monitoring, database=probe, cache=redis)
        await monitor.start()

        monitor.update_metrics(1000, 12, 0.25, 40)
        alert = monitor.create_alert(AlertLevel.WARNING, "Disk", "80% full")
        monitor.resolve_alert(alert.id)

        await monitor.stop()
    """

    def __init__(
        self,
        config: MonitoringConfig | None = None,
        database: DatabaseProbe | None = None,
        cache: AlertCache | None = None,
        error_metrics_fn: ErrorMetricsFn | None = get_error_metrics,
        *,
        database_enabled: bool = True,
        cache_enabled: bool = True,
    ) -> None:
        self._config = config or MonitoringConfig()
        self._database = database
        self._cache = cache
        self._error_metrics_fn = error_metrics_fn
        # A disabled dependency is not probed at all.
        self._database_enabled = database_enabled
        self._cache_enabled = cache_enabled

        self._alerts: dict[str, Alert] = {}
        self._alerts_lock = threading.Lock()
        self._metrics = SystemMetrics()
        self._metrics_lock = threading.Lock()

        # Background loop state
        self._task: asyncio.Task[None] | None = None
        self._running = False
        self._loop: asyncio.AbstractEventLoop | None = None
        self._tick_count = 0
        self._pending: set[asyncio.Task[None]] = set()

    # ── Properties ───────────────────────────────────────────────

    @property
    def config(self) -> MonitoringConfig:
        return self._config

    @property
    def running(self) -> bool:
        """Whether the background loop is active."""
        return self._running

    @property
    def tick_count(self) -> int:
        """Number of completed background ticks."""
        return self._tick_count

    def configure(
        self,
        config: MonitoringConfig | None = None,
        database: DatabaseProbe | None = None,
        cache: AlertCache | None = None,
        error_metrics_fn: ErrorMetricsFn | None = get_error_metrics,
        *,
        database_enabled: bool = True,
        cache_enabled: bool = True,
    ) -> None:
        """Replace configuration and collaborators before the loop starts.

        Alerts and metrics already recorded are kept.

        Raises:
            MonitorError: if the background loop is running.
        """
        if self._running:
            raise MonitorError("cannot reconfigure a running monitor")
        self._config = config or MonitoringConfig()
        self._database = database
        self._cache = cache
        self._error_metrics_fn = error_metrics_fn
        self._database_enabled = database_enabled
        self._cache_enabled = cache_enabled
        logger.debug(
            "monitor_configured",
            service=self._config.service_name,
            database=database is not None,
            cache=cache is not None,
        )

    # ── Alerts ───────────────────────────────────────────────────

    def create_alert(
        self,
        level: AlertLevel,
        title: str,
        message: str,
        metadata: dict[str, Any] | None = None,
    ) -> Alert:
        """Record a new unresolved alert and schedule its persistence.

        Never fails: logging and cache problems are reported through the
        logger only.
        """
        alert = Alert(
            id=generate_alert_id(),
            level=AlertLevel(level),
            title=title,
            message=message,
            service=self._config.service_name,
            metadata=metadata,
        )

        with self._alerts_lock:
            self._alerts[alert.id] = alert
            snapshot = alert.model_copy(deep=True)

        log = getattr(logger, _LOG_METHOD[snapshot.level])
        log(
            "critical_alert_created" if snapshot.level == AlertLevel.CRITICAL else "alert_created",
            alert_id=snapshot.id,
            level=snapshot.level.value,
            title=title,
            message=message,
            metadata=metadata,
        )

        self._schedule_persist(snapshot)
        return snapshot

    def resolve_alert(self, alert_id: str) -> Alert:
        """Mark an alert resolved.

        Resolving an already resolved alert is a no-op and keeps the
        original ``resolved_at``.

        Raises:
            AlertNotFoundError: if no alert has this id.
        """
        with self._alerts_lock:
            alert = self._alerts.get(alert_id)
            if alert is None:
                raise AlertNotFoundError(alert_id)
            already_resolved = alert.resolved
            if not already_resolved:
                alert.resolved = True
                alert.resolved_at = max(time.time(), alert.timestamp)
            snapshot = alert.model_copy(deep=True)

        if already_resolved:
            logger.debug("alert_already_resolved", alert_id=alert_id)
            return snapshot

        logger.info("alert_resolved", alert_id=alert_id, title=snapshot.title)
        self._schedule_persist(snapshot)
        return snapshot

    def get_alert(self, alert_id: str) -> Alert:
        with self._alerts_lock:
            alert = self._alerts.get(alert_id)
            if alert is None:
                raise AlertNotFoundError(alert_id)
            return alert.model_copy(deep=True)

    def get_alerts(self) -> list[Alert]:
        """Return copies of all unresolved alerts (unordered)."""
        with self._alerts_lock:
            return [a.model_copy(deep=True) for a in self._alerts.values() if not a.resolved]

    def get_all_alerts(self) -> list[Alert]:
        """Return copies of every alert, resolved or not."""
        with self._alerts_lock:
            return [a.model_copy(deep=True) for a in self._alerts.values()]

    def cleanup_old_alerts(self, now: float | None = None) -> int:
        """Drop resolved alerts older than the retention window.

        Returns the number of alerts removed.
        """
        now = time.time() if now is None else now
        cutoff = now - self._config.alert_retention_hours * 3600

        with self._alerts_lock:
            expired = [
                alert_id
                for alert_id, a in self._alerts.items()
                if a.resolved and a.resolved_at is not None and a.resolved_at < cutoff
            ]
            for alert_id in expired:
                del self._alerts[alert_id]

        if expired:
            logger.debug("resolved_alerts_pruned", count=len(expired))
        return len(expired)

    # ── Metrics ──────────────────────────────────────────────────

    def update_metrics(
        self,
        request_count: int,
        error_count: int,
        avg_response_time_secs: float,
        active_users: int,
    ) -> None:
        """Replace the request counters and evaluate threshold rules.

        Every call that breaches a threshold raises a new warning alert.
        """
        error_rate = error_count / request_count * 100 if request_count > 0 else 0.0
        breakdown = self._read_error_breakdown()

        with self._metrics_lock:
            m = self._metrics
            m.timestamp = time.time()
            m.request_count = request_count
            m.error_count = error_count
            m.error_rate = error_rate
            m.avg_response_time_secs = avg_response_time_secs
            m.active_users = active_users
            m.error_breakdown = breakdown

        if error_rate > self._config.error_rate_threshold_pct:
            self.create_alert(
                AlertLevel.WARNING,
                "High Error Rate Detected",
                f"Error rate is {error_rate:.2f}% "
                f"({error_count} errors out of {request_count} requests)",
                {
                    "error_rate": error_rate,
                    "error_count": error_count,
                    "request_count": request_count,
                },
            )

        if avg_response_time_secs > self._config.response_time_threshold_secs:
            self.create_alert(
                AlertLevel.WARNING,
                "High Response Time Detected",
                f"Average response time is {avg_response_time_secs:.3f}s",
                {"avg_response_time_secs": avg_response_time_secs},
            )

    def get_metrics(self) -> SystemMetrics:
        """Return a deep copy of the current metrics snapshot."""
        with self._metrics_lock:
            return self._metrics.model_copy(deep=True)

    def _read_error_breakdown(self) -> ErrorMetrics | None:
        if self._error_metrics_fn is None:
            return None
        try:
            return self._error_metrics_fn()
        except Exception:
            logger.exception("error_breakdown_read_failed")
            return None

    # ── Health checks ────────────────────────────────────────────

    async def run_health_check(self, name: str, probe: HealthProbe) -> HealthCheck:
        """Run *probe*, time it and record the result under *name*.

        The probe returns a status message (directly or as an awaitable)
        and signals failure by raising. A failure becomes an ``unhealthy``
        result plus a critical alert; it is never re-raised.
        """
        status = HealthStatus.HEALTHY
        start = time.perf_counter()
        try:
            result = probe()
            if inspect.isawaitable(result):
                result = await result
            message = "" if result is None else str(result)
        except Exception as exc:
            status = HealthStatus.UNHEALTHY
            message = str(exc) or type(exc).__name__
        duration = time.perf_counter() - start

        check = HealthCheck(
            name=name,
            status=status,
            message=message,
            duration_secs=duration,
        )

        with self._metrics_lock:
            self._metrics.health_checks[name] = check

        logger.debug(
            "health_check_completed",
            check=name,
            status=status.value,
            duration_secs=round(duration, 6),
        )

        if status == HealthStatus.UNHEALTHY:
            self.create_alert(
                AlertLevel.CRITICAL,
                f"{name} Health Check Failed",
                message,
                {"service": name, "duration_secs": duration},
            )

        return check.model_copy(deep=True)

    async def check_now(self) -> HealthReport:
        """Probe the enabled dependencies immediately and summarise."""
        checks = await self._check_dependencies()

        overall = (
            HealthStatus.HEALTHY
            if all(c.healthy for c in checks)
            else HealthStatus.UNHEALTHY
        )
        return HealthReport(
            status=overall,
            checks={c.name: c for c in checks},
            metrics=self.get_metrics(),
        )

    async def _check_dependencies(self) -> list[HealthCheck]:
        checks: list[HealthCheck] = []
        if self._database_enabled:
            checks.append(await self._check_database())
        if self._cache_enabled:
            checks.append(await self._check_redis())
        self._mirror_dependency_health()
        return checks

    async def _check_database(self) -> HealthCheck:
        return await self.run_health_check(DATABASE_CHECK, database_check(self._database))

    async def _check_redis(self) -> HealthCheck:
        return await self.run_health_check(
            REDIS_CHECK,
            cache_check(self._cache, self._config.cache_timeout_secs),
        )

    def _mirror_dependency_health(self) -> None:
        with self._metrics_lock:
            checks = self._metrics.health_checks
            if DATABASE_CHECK in checks:
                self._metrics.database_health = checks[DATABASE_CHECK].status.value
            if REDIS_CHECK in checks:
                self._metrics.redis_health = checks[REDIS_CHECK].status.value

    # ── Lifecycle ────────────────────────────────────────────────

    async def start(self) -> None:
        """Start the background monitor loop (no-op if already running)."""
        if self._running:
            return
        self._loop = asyncio.get_running_loop()
        self._running = True
        self._task = asyncio.create_task(self._monitor_loop())
        logger.info(
            "monitor_started",
            check_interval=self._config.check_interval_secs,
            database=self._database is not None,
            cache=self._cache is not None,
            database_enabled=self._database_enabled,
            cache_enabled=self._cache_enabled,
        )

    async def stop(self) -> None:
        """Cancel the loop and wait for in-flight persistence writes."""
        self._running = False
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        await self.flush()
        logger.info("monitor_stopped", tick_count=self._tick_count)

    async def tick(self) -> None:
        """One background iteration: probe dependencies, prune alerts."""
        await self._check_dependencies()
        self.cleanup_old_alerts()
        self._tick_count += 1

    async def _monitor_loop(self) -> None:
        while self._running:
            try:
                await asyncio.sleep(self._config.check_interval_secs)
            except asyncio.CancelledError:
                break

            try:
                await self.tick()
            except asyncio.CancelledError:
                break
            except Exception:
                logger.exception("monitor_tick_error")

    # ── Persistence ──────────────────────────────────────────────

    async def flush(self) -> None:
        """Wait for all scheduled cache writes to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def _schedule_persist(self, alert: Alert) -> None:
        cache = self._cache
        if cache is None:
            return

        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if running is not None:
            self._spawn_persist(cache, alert)
        elif self._loop is not None and self._loop.is_running():
            self._loop.call_soon_threadsafe(self._spawn_persist, cache, alert)
        else:
            logger.debug("alert_persist_skipped", alert_id=alert.id, reason="no_event_loop")

    def _spawn_persist(self, cache: AlertCache, alert: Alert) -> None:
        task = asyncio.get_running_loop().create_task(self._persist_alert(cache, alert))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _persist_alert(self, cache: AlertCache, alert: Alert) -> None:
        try:
            payload = alert.model_dump_json()
        except Exception:
            logger.exception("alert_serialize_failed", alert_id=alert.id)
            return

        key = f"{self._config.alert_key_prefix}{alert.id}"
        try:
            await asyncio.wait_for(
                cache.set(key, payload, ex=self._config.alert_ttl_secs),
                timeout=self._config.cache_timeout_secs,
            )
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("alert_persist_failed", alert_id=alert.id, key=key)

"""Monitoring, alerting, and health check subsystem."""

from storewatch.monitor.client_errors import (
    ClientErrorReport,
    contains_critical_keywords,
    report_client_error,
)
from storewatch.monitor.error_metrics import (
    ErrorMetricsTracker,
    get_error_metrics,
    record_error,
    reset_error_metrics,
)
from storewatch.monitor.exceptions import AlertNotFoundError, MonitorError
from storewatch.monitor.monitor import HealthProbe, Monitor
from storewatch.monitor.probes import AlertCache, DatabaseProbe, SQLAlchemyProbe
from storewatch.monitor.registry import (
    create_alert,
    get_alerts,
    get_all_alerts,
    get_metrics,
    get_monitor,
    initialize,
    reset_monitor,
    resolve_alert,
    run_health_check,
    shutdown,
    update_metrics,
)
from storewatch.monitor.types import (
    Alert,
    AlertLevel,
    ErrorMetrics,
    ErrorType,
    HealthCheck,
    HealthReport,
    HealthStatus,
    SystemMetrics,
)

__all__ = [
    "Alert",
    "AlertCache",
    "AlertLevel",
    "AlertNotFoundError",
    "ClientErrorReport",
    "DatabaseProbe",
    "ErrorMetrics",
    "ErrorMetricsTracker",
    "ErrorType",
    "HealthCheck",
    "HealthProbe",
    "HealthReport",
    "HealthStatus",
    "Monitor",
    "MonitorError",
    "SQLAlchemyProbe",
    "SystemMetrics",
    "contains_critical_keywords",
    "create_alert",
    "get_alerts",
    "get_all_alerts",
    "get_error_metrics",
    "get_metrics",
    "get_monitor",
    "initialize",
    "record_error",
    "report_client_error",
    "reset_error_metrics",
    "reset_monitor",
    "resolve_alert",
    "run_health_check",
    "shutdown",
    "update_metrics",
]

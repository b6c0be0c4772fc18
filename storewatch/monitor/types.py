"""Domain types for the monitoring / alerting subsystem."""

from __future__ import annotations

import time
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field


class AlertLevel(StrEnum):
    """Alert severity."""

    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


class HealthStatus(StrEnum):
    """Two-valued outcome of a health check."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


class ErrorType(StrEnum):
    """Application error categories counted by the error tracker."""

    VALIDATION = "VALIDATION_ERROR"
    AUTHENTICATION = "AUTHENTICATION_ERROR"
    AUTHORIZATION = "AUTHORIZATION_ERROR"
    NOT_FOUND = "NOT_FOUND_ERROR"
    CONFLICT = "CONFLICT_ERROR"
    DATABASE = "DATABASE_ERROR"
    EXTERNAL_SERVICE = "EXTERNAL_SERVICE_ERROR"
    INTERNAL = "INTERNAL_ERROR"
    RATE_LIMIT = "RATE_LIMIT_ERROR"


class Alert(BaseModel):
    """A recorded notable event with severity and resolution state.

    Once ``resolved`` is set, ``resolved_at`` is populated and never
    earlier than ``timestamp``.
    """

    id: str
    level: AlertLevel
    title: str
    message: str = ""
    service: str = ""
    timestamp: float = Field(default_factory=time.time)
    metadata: dict[str, Any] | None = None
    resolved: bool = False
    resolved_at: float | None = None


class HealthCheck(BaseModel):
    """Latest result of a named, timed dependency probe."""

    name: str
    status: HealthStatus
    message: str = ""
    timestamp: float = Field(default_factory=time.time)
    duration_secs: float = 0.0
    metadata: dict[str, Any] | None = None

    @property
    def healthy(self) -> bool:
        return self.status == HealthStatus.HEALTHY


class ErrorMetrics(BaseModel):
    """Error counts broken down by category and code."""

    total_errors: int = 0
    errors_by_type: dict[str, int] = Field(default_factory=dict)
    errors_by_code: dict[str, int] = Field(default_factory=dict)
    last_updated: float | None = None


class SystemMetrics(BaseModel):
    """Current aggregate request/error/latency counters plus health results."""

    timestamp: float = 0.0
    request_count: int = 0
    error_count: int = 0
    error_rate: float = 0.0
    avg_response_time_secs: float = 0.0
    active_users: int = 0
    database_health: str = ""
    redis_health: str = ""
    health_checks: dict[str, HealthCheck] = Field(default_factory=dict)
    error_breakdown: ErrorMetrics | None = None


class HealthReport(BaseModel):
    """On-demand health summary of the monitored dependencies."""

    status: HealthStatus
    timestamp: float = Field(default_factory=time.time)
    checks: dict[str, HealthCheck] = Field(default_factory=dict)
    metrics: SystemMetrics

"""Client-side error reports from the storefront frontend."""

from __future__ import annotations

import datetime
import time
from typing import Any

import structlog
from pydantic import BaseModel, Field

from storewatch.monitor.error_metrics import ErrorMetricsTracker, default_tracker
from storewatch.monitor.monitor import Monitor
from storewatch.monitor.types import Alert, AlertLevel, ErrorType

logger = structlog.stdlib.get_logger()

# Messages mentioning any of these raise a warning alert.
CRITICAL_KEYWORDS: tuple[str, ...] = (
    "payment",
    "checkout",
    "order",
    "security",
    "authentication",
    "authorization",
    "database",
    "network",
    "timeout",
)

CLIENT_ERROR_CODE = "CLIENT_ERROR"


class ClientErrorReport(BaseModel):
    """Error reported by the browser (error boundary, failed fetch, ...)."""

    message: str
    timestamp: str
    stack: str = ""
    digest: str = ""
    user_agent: str = ""
    url: str = ""
    user_id: str = ""
    metadata: dict[str, Any] = Field(default_factory=dict)

    def reported_at(self) -> float:
        """Client timestamp as epoch seconds; server time if unparseable."""
        try:
            return datetime.datetime.fromisoformat(self.timestamp).timestamp()
        except ValueError:
            return time.time()


def contains_critical_keywords(message: str) -> bool:
    lowered = message.lower()
    return any(keyword in lowered for keyword in CRITICAL_KEYWORDS)


def report_client_error(
    monitor: Monitor,
    report: ClientErrorReport,
    tracker: ErrorMetricsTracker | None = None,
) -> Alert | None:
    """Log a client error, count it, and alert on critical keywords.

    Returns the alert raised, if any.
    """
    logger.error(
        "client_error_reported",
        client_message=report.message,
        client_stack=report.stack,
        client_digest=report.digest,
        client_url=report.url,
        user_agent=report.user_agent,
        user_id=report.user_id,
        metadata=report.metadata,
        reported_at=report.reported_at(),
    )

    alert: Alert | None = None
    if contains_critical_keywords(report.message):
        alert = monitor.create_alert(
            AlertLevel.WARNING,
            "Critical Client Error",
            report.message,
            {
                "url": report.url,
                "user_agent": report.user_agent,
                "user_id": report.user_id,
                "stack": report.stack,
            },
        )

    (tracker or default_tracker()).record_error(ErrorType.INTERNAL, CLIENT_ERROR_CODE)
    return alert

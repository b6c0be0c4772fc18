"""Monitoring exceptions."""

from __future__ import annotations


class MonitorError(Exception):
    """Base exception for monitoring errors."""


class AlertNotFoundError(MonitorError):
    """No alert with the given id is held by the monitor."""

    def __init__(self, alert_id: str) -> None:
        super().__init__(f"alert not found: {alert_id}")
        self.alert_id = alert_id

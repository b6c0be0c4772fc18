"""Monitoring and alerting core for the ecommerce API."""

__version__ = "0.1.0"

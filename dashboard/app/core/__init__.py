"""Core utilities for the dashboard client."""

from dashboard.app.core.config import Settings, settings
from dashboard.app.core.http_client import (
    create_http_client,
    get_http_client,
    init_http_client,
)
from dashboard.app.core.logging import get_logger, setup_logging

__all__ = [
    "Settings",
    "settings",
    "create_http_client",
    "get_http_client",
    "init_http_client",
    "get_logger",
    "setup_logging",
]

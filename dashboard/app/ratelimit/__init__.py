"""Client-side rate limiting and server rate-limit telemetry."""

from dashboard.app.ratelimit.limiter import ClientRateLimiter
from dashboard.app.ratelimit.models import RateLimitEntry, RateLimitTelemetry
from dashboard.app.ratelimit.telemetry import (
    TelemetryPublisher,
    parse_rate_limit_headers,
)

__all__ = [
    "ClientRateLimiter",
    "RateLimitEntry",
    "RateLimitTelemetry",
    "TelemetryPublisher",
    "parse_rate_limit_headers",
]

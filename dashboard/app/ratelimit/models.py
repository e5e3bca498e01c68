"""Rate limiting data models.

This module contains dataclasses for client-side window state and for the
quota snapshot the backend reports in response headers.
"""

from dataclasses import dataclass


@dataclass
class RateLimitEntry:
    """Per-endpoint fixed-window counter.

    ``window_reset_at`` is expressed on the limiter's clock; once the clock
    reaches it the entry counts as a fresh window.
    """
    endpoint: str
    count: int = 0
    window_reset_at: float = 0.0

    def is_expired(self, now: float) -> bool:
        return now >= self.window_reset_at


@dataclass(frozen=True)
class RateLimitTelemetry:
    """Server-reported quota snapshot parsed from response headers."""
    limit: int
    remaining: int
    reset_at: str = ""

    def to_dict(self) -> dict:
        return {"limit": self.limit, "remaining": self.remaining, "reset_at": self.reset_at}

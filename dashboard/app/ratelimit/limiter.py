"""Client-side per-endpoint rate limiter.

A soft guard that stops the client from firing more than a fixed number of
requests to one logical endpoint within a fixed window, before any network
call is attempted. State lives only in this object: it is created with the
request client and discarded with it.
"""

import threading
import time
from typing import Callable, Dict, Optional

from dashboard.app.core.config import Settings, settings as default_settings
from dashboard.app.core.logging import get_log_context, get_logger
from dashboard.app.ratelimit.models import RateLimitEntry

logger = get_logger(__name__)

DEFAULT_REQUESTS_PER_WINDOW = 50
DEFAULT_WINDOW_SECONDS = 300.0  # 5 minutes


class ClientRateLimiter:
    """Fixed-window request counter keyed by endpoint.

    ``can_make_request`` both checks and consumes a slot, so it must be called
    exactly once per attempted request. ``get_remaining_requests`` is a pure
    query.

    The check-and-increment runs under a lock so the limiter can be shared
    between threads as well as between tasks of one event loop. The lock is
    never held across an await.
    """

    def __init__(
        self,
        requests_per_window: int = DEFAULT_REQUESTS_PER_WINDOW,
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize rate limiter.

        Args:
            requests_per_window: Maximum requests per endpoint per window
            window_seconds: Window length in seconds
            clock: Monotonic time source in seconds (injectable for tests)
        """
        if requests_per_window < 1:
            raise ValueError("requests_per_window must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")

        self.requests_per_window = requests_per_window
        self.window_seconds = window_seconds
        self._clock = clock
        self._entries: Dict[str, RateLimitEntry] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls, config: Optional[Settings] = None) -> "ClientRateLimiter":
        config = config or default_settings
        return cls(
            requests_per_window=config.client_rate_limit_requests,
            window_seconds=config.client_rate_limit_window_seconds,
        )

    def _live_entry(self, endpoint: str, now: float) -> Optional[RateLimitEntry]:
        entry = self._entries.get(endpoint)
        if entry is None or entry.is_expired(now):
            return None
        return entry

    def can_make_request(self, endpoint: str) -> bool:
        """Check the endpoint's quota and consume one slot if allowed."""
        with self._lock:
            now = self._clock()
            entry = self._live_entry(endpoint, now)

            if entry is None:
                self._entries[endpoint] = RateLimitEntry(
                    endpoint=endpoint,
                    count=1,
                    window_reset_at=now + self.window_seconds,
                )
                return True

            if entry.count >= self.requests_per_window:
                logger.warning(
                    f"Client rate limit reached for '{endpoint}' "
                    f"({entry.count}/{self.requests_per_window}), "
                    f"resets in {entry.window_reset_at - now:.1f}s",
                    extra=get_log_context(endpoint=endpoint),
                )
                return False

            entry.count += 1
            return True

    def get_remaining_requests(self, endpoint: str) -> int:
        """Return how many requests the endpoint may still make in its window."""
        with self._lock:
            entry = self._live_entry(endpoint, self._clock())
            if entry is None:
                return self.requests_per_window
            return max(0, self.requests_per_window - entry.count)

    def get_reset_in(self, endpoint: str) -> float:
        """Seconds until the endpoint's window resets (0.0 if no live window)."""
        with self._lock:
            now = self._clock()
            entry = self._live_entry(endpoint, now)
            if entry is None:
                return 0.0
            return max(0.0, entry.window_reset_at - now)

    def reset(self, endpoint: Optional[str] = None) -> None:
        """Forget one endpoint's window, or every window when endpoint is None."""
        with self._lock:
            if endpoint is None:
                self._entries.clear()
            else:
                self._entries.pop(endpoint, None)

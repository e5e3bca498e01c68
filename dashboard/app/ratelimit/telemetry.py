"""Server rate-limit telemetry: header parsing and observer broadcast.

The request client publishes one ``RateLimitTelemetry`` per response that
carries rate-limit headers. It neither knows nor cares who listens.
"""

import re
from typing import Callable, List, Mapping, Optional

from dashboard.app.core.logging import get_logger
from dashboard.app.ratelimit.models import RateLimitTelemetry

logger = get_logger(__name__)

LIMIT_HEADER = "X-RateLimit-Limit"
REMAINING_HEADER = "X-RateLimit-Remaining"
RESET_HEADER = "X-RateLimit-Reset"

TelemetryObserver = Callable[[RateLimitTelemetry], None]

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def _parse_int(raw: Optional[str]) -> int:
    """Leading integer of ``raw`` ("100abc" -> 100); 0 when there is none."""
    match = _LEADING_INT.match(raw or "")
    return int(match.group(1)) if match else 0


def parse_rate_limit_headers(headers: Mapping[str, str]) -> Optional[RateLimitTelemetry]:
    """Build a telemetry snapshot from response headers.

    Returns None when the limit header is absent. Limit and remaining
    values parse as their leading integer (0 when missing or non-numeric),
    a missing reset as "".

    Args:
        headers: Response headers (case-insensitive mapping such as httpx.Headers)
    """
    raw_limit = headers.get(LIMIT_HEADER)
    if not raw_limit:
        return None
    return RateLimitTelemetry(
        limit=_parse_int(raw_limit),
        remaining=_parse_int(headers.get(REMAINING_HEADER)),
        reset_at=headers.get(RESET_HEADER) or "",
    )


class TelemetryPublisher:
    """Synchronous fan-out of telemetry snapshots to registered observers."""

    def __init__(self) -> None:
        self._observers: List[TelemetryObserver] = []

    def subscribe(self, observer: TelemetryObserver) -> Callable[[], None]:
        """Register an observer and return a callable that unregisters it."""
        if observer not in self._observers:
            self._observers.append(observer)

        def _unsubscribe() -> None:
            self.unsubscribe(observer)

        return _unsubscribe

    def unsubscribe(self, observer: TelemetryObserver) -> None:
        if observer in self._observers:
            self._observers.remove(observer)

    @property
    def observer_count(self) -> int:
        return len(self._observers)

    def publish(self, telemetry: RateLimitTelemetry) -> None:
        """Deliver a snapshot to every observer.

        An observer that raises is logged and skipped; delivery to the
        others and the request that produced the snapshot carry on.
        """
        for observer in list(self._observers):
            try:
                observer(telemetry)
            except Exception:
                logger.exception(
                    f"Rate limit telemetry observer {observer!r} failed"
                )

from typing import Optional

from dashboard.app.core.config import Settings, settings as default_settings
from dashboard.app.ratelimit.models import RateLimitTelemetry
from dashboard.app.ratelimit.telemetry import TelemetryPublisher

DEFAULT_VISIBILITY_THRESHOLD = 20
WARNING_REMAINING = 10
CRITICAL_REMAINING = 5


class RateLimitIndicator:
    """View state for the server quota indicator.

    Subscribes to telemetry on construction; ``close()`` unsubscribes.
    Becomes visible once fewer than ``threshold`` requests remain.
    """

    def __init__(
        self,
        publisher: TelemetryPublisher,
        threshold: int = DEFAULT_VISIBILITY_THRESHOLD,
    ):
        self.threshold = threshold
        self.latest: Optional[RateLimitTelemetry] = None
        self._unsubscribe = publisher.subscribe(self.update)

    @classmethod
    def from_settings(
        cls, publisher: TelemetryPublisher, config: Optional[Settings] = None
    ) -> "RateLimitIndicator":
        config = config or default_settings
        return cls(publisher, threshold=config.rate_limit_indicator_threshold)

    def update(self, telemetry: RateLimitTelemetry) -> None:
        self.latest = telemetry

    @property
    def visible(self) -> bool:
        return self.latest is not None and self.latest.remaining < self.threshold

    @property
    def level(self) -> str:
        """Severity: critical, warning or info."""
        if self.latest is None:
            return "info"
        if self.latest.remaining <= CRITICAL_REMAINING:
            return "critical"
        if self.latest.remaining <= WARNING_REMAINING:
            return "warning"
        return "info"

    @property
    def usage_percent(self) -> float:
        if self.latest is None or self.latest.limit <= 0:
            return 0.0
        used = self.latest.limit - self.latest.remaining
        return used / self.latest.limit * 100

    def close(self) -> None:
        self._unsubscribe()

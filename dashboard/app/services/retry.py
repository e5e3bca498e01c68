"""Retry policy for the authenticated request client.

Retries are driven by an explicit allow-list of transient failures rather
than by excluding known-permanent ones, so a 4xx on a non-idempotent call
is never replayed.
"""

from dataclasses import dataclass

from dashboard.app.exceptions import (
    HttpError,
    NetworkError,
    RequestAborted,
)


@dataclass
class RetryPolicy:
    """Configuration for retry behavior.

    Attributes:
        max_retries: Additional attempts after the first failure (default: 0)
        retry_delay: Delay before each retry in seconds (default: 1.0)
        backoff_factor: Multiplier applied per retry; 1.0 keeps the delay fixed
        max_delay: Upper bound for a single delay in seconds
        retry_on_timeout: Whether a local timeout counts as transient

    Example:
        >>> policy = RetryPolicy(max_retries=2, retry_delay=0.5, backoff_factor=2.0)
        >>> policy.calculate_delay(attempt=1)
        1.0
    """

    max_retries: int = 0
    retry_delay: float = 1.0
    backoff_factor: float = 1.0
    max_delay: float = 30.0
    retry_on_timeout: bool = False

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries must not be negative")
        if self.retry_delay < 0:
            raise ValueError("retry_delay must not be negative")
        if self.backoff_factor < 1.0:
            raise ValueError("backoff_factor must be at least 1.0")

    def calculate_delay(self, attempt: int) -> float:
        """Delay before retry number ``attempt + 1`` (0-indexed).

        delay = min(retry_delay * backoff_factor ^ attempt, max_delay)
        """
        delay = self.retry_delay * (self.backoff_factor**attempt)
        return min(delay, max(self.max_delay, self.retry_delay))

    def is_retryable(self, exception: Exception) -> bool:
        """Check if an exception should trigger a retry.

        Retryable: network failures, HTTP 5xx, and local timeouts when
        ``retry_on_timeout`` is set. Caller cancellation, 429, 4xx, missing
        session and local quota exhaustion never are.
        """
        if isinstance(exception, RequestAborted):
            return self.retry_on_timeout and exception.reason == RequestAborted.TIMEOUT
        if isinstance(exception, (NetworkError, HttpError)):
            return exception.transient
        return False

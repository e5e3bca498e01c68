"""Classified errors raised by the authenticated request client.

Every failure carries a ``kind`` so the presentation layer can choose a
user-facing message without inspecting the error text.
"""

from enum import Enum


class ErrorKind(str, Enum):
    CLIENT_RATE_LIMIT_EXCEEDED = "client_rate_limit_exceeded"
    NO_ACTIVE_SESSION = "no_active_session"
    REQUEST_ABORTED = "request_aborted"
    SERVER_RATE_LIMITED = "server_rate_limited"
    HTTP_ERROR = "http_error"
    NETWORK_ERROR = "network_error"


class DashboardClientError(Exception):
    """Base class for request client errors.

    Subclasses define their ``kind`` and whether they are transient
    (worth retrying without caller intervention).
    """
    kind: ErrorKind = ErrorKind.NETWORK_ERROR
    transient: bool = False

    def __init__(self, message: str = "Request failed"):
        self.message = message
        super().__init__(message)


class ClientRateLimitExceeded(DashboardClientError):
    """Raised when the local per-endpoint quota is exhausted.

    No credential lookup and no network call happen in this case.
    """
    kind = ErrorKind.CLIENT_RATE_LIMIT_EXCEEDED

    def __init__(self, endpoint: str, reset_in: float | None = None):
        self.endpoint = endpoint
        self.reset_in = reset_in
        super().__init__(f"Client rate limit exceeded for endpoint '{endpoint}'")


class NoActiveSession(DashboardClientError):
    """Raised when the credential provider has no active session.

    The caller should send the user back to sign-in.
    """
    kind = ErrorKind.NO_ACTIVE_SESSION

    def __init__(self, detail: str = "No active session"):
        super().__init__(detail)


class RequestAborted(DashboardClientError):
    """Raised when an in-flight request is aborted locally.

    ``reason`` is ``"timeout"`` when the request outlived its timeout and
    ``"cancelled"`` when the caller cancelled it.
    """
    kind = ErrorKind.REQUEST_ABORTED

    TIMEOUT = "timeout"
    CANCELLED = "cancelled"

    def __init__(self, reason: str = TIMEOUT, timeout: float | None = None):
        self.reason = reason
        self.timeout = timeout
        if reason == self.TIMEOUT and timeout is not None:
            message = f"Request aborted after {timeout:g}s timeout"
        else:
            message = f"Request aborted ({reason})"
        super().__init__(message)


class ServerRateLimited(DashboardClientError):
    """Raised on HTTP 429. Never retried automatically.

    Maps the backend's Retry-After header to ``retry_after`` seconds.
    """
    kind = ErrorKind.SERVER_RATE_LIMITED

    DEFAULT_RETRY_AFTER = 60

    def __init__(self, retry_after: int = DEFAULT_RETRY_AFTER):
        self.retry_after = retry_after
        super().__init__(f"Server rate limit exceeded. Retry after {retry_after}s")


class HttpError(DashboardClientError):
    """Raised for any non-2xx response other than 429."""
    kind = ErrorKind.HTTP_ERROR

    def __init__(self, status_code: int, message: str = "Unknown error"):
        self.status_code = status_code
        self.detail = message
        super().__init__(f"HTTP {status_code}: {message}")

    @property
    def transient(self) -> bool:  # type: ignore[override]
        return self.status_code >= 500


class NetworkError(DashboardClientError):
    """Raised when no response was received (DNS, connect, reset...)."""
    kind = ErrorKind.NETWORK_ERROR
    transient = True

    def __init__(self, message: str = "Network error", cause: Exception | None = None):
        self.cause = cause
        super().__init__(message)

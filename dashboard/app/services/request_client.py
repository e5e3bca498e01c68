"""Authenticated request client for the dashboard's backend functions.

One ``send()`` performs a logical call: local quota check, credential
resolution, a POST raced against timeout and caller cancellation,
rate-limit telemetry broadcast, response classification and bounded retry
of transient failures. Every failure surfaces as a ``DashboardClientError``
subclass with its kind preserved.
"""

import asyncio
import time
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Dict, Optional

import httpx

from dashboard.app.core.config import Settings, settings as default_settings
from dashboard.app.core.http_client import create_http_client
from dashboard.app.core.logging import get_log_context, get_logger
from dashboard.app.exceptions import (
    ClientRateLimitExceeded,
    DashboardClientError,
    HttpError,
    NetworkError,
    NoActiveSession,
    RequestAborted,
    ServerRateLimited,
)
from dashboard.app.ratelimit.limiter import ClientRateLimiter
from dashboard.app.ratelimit.telemetry import TelemetryPublisher, parse_rate_limit_headers
from dashboard.app.services.credentials import CredentialProvider
from dashboard.app.services.retry import RetryPolicy

logger = get_logger(__name__)

_sleep = asyncio.sleep

RESPONSE_TYPES = ("json", "text")

CLIENT_REMAINING_HEADER = "X-Rate-Limit-Remaining"
REQUEST_ID_HEADER = "X-Request-ID"


class RequestState(str, Enum):
    IDLE = "idle"
    RATE_LIMIT_CHECKED = "rate_limit_checked"
    CREDENTIAL_RESOLVED = "credential_resolved"
    IN_FLIGHT = "in_flight"
    SUCCEEDED = "succeeded"
    ABORTED = "aborted"
    SERVER_REJECTED = "server_rejected"
    HTTP_FAILED = "http_failed"
    NETWORK_FAILED = "network_failed"


_FAILURE_STATES = {
    RequestAborted: RequestState.ABORTED,
    ServerRateLimited: RequestState.SERVER_REJECTED,
    HttpError: RequestState.HTTP_FAILED,
    NetworkError: RequestState.NETWORK_FAILED,
}


@dataclass
class RequestOptions:
    """Per-call options for ``AuthenticatedRequestClient.send``.

    Attributes:
        timeout: Seconds before the in-flight call is aborted
        max_retries: Additional attempts for retryable failures
        retry_delay: Seconds awaited before each retry
        response_type: "json" or "text"
        retry_on_timeout: Treat a local timeout as retryable
        backoff_factor: Delay multiplier per retry (1.0 = fixed delay)
    """

    timeout: float = 30.0
    max_retries: int = 0
    retry_delay: float = 1.0
    response_type: str = "json"
    retry_on_timeout: bool = False
    backoff_factor: float = 1.0

    def __post_init__(self) -> None:
        if self.response_type not in RESPONSE_TYPES:
            raise ValueError(
                f"response_type must be one of {RESPONSE_TYPES}, got {self.response_type!r}"
            )
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")

    @classmethod
    def from_settings(cls, config: Optional[Settings] = None) -> "RequestOptions":
        config = config or default_settings
        return cls(
            timeout=config.request_timeout_seconds,
            max_retries=config.request_max_retries,
            retry_delay=config.request_retry_delay_seconds,
            retry_on_timeout=config.request_retry_on_timeout,
            backoff_factor=config.request_retry_backoff_factor,
        )

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_retries=self.max_retries,
            retry_delay=self.retry_delay,
            backoff_factor=self.backoff_factor,
            retry_on_timeout=self.retry_on_timeout,
        )


class CancellationToken:
    """Caller-held handle that aborts an in-flight ``send()``.

    A UI navigating away calls ``cancel()``; the pending call raises
    ``RequestAborted(reason="cancelled")`` and is not retried.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        await self._event.wait()


def _parse_retry_after(raw: Optional[str]) -> int:
    if raw is None:
        return ServerRateLimited.DEFAULT_RETRY_AFTER
    try:
        value = int(float(raw.strip()))
    except (ValueError, OverflowError):
        return ServerRateLimited.DEFAULT_RETRY_AFTER
    return max(0, value)


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return "Unknown error"
    if isinstance(payload, dict) and payload.get("error"):
        return str(payload["error"])
    return "Unknown error"


class AuthenticatedRequestClient:
    """Performs authenticated POST calls to named backend endpoints.

    The client owns its ``ClientRateLimiter`` (unless one is injected) and
    therefore the per-endpoint quota state; both live exactly as long as the
    client. An injected ``httpx.AsyncClient`` is never closed by this class.
    """

    def __init__(
        self,
        base_url: str,
        credential_provider: CredentialProvider,
        api_key: str = "",
        rate_limiter: Optional[ClientRateLimiter] = None,
        publisher: Optional[TelemetryPublisher] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        default_options: Optional[RequestOptions] = None,
    ):
        """Initialize the request client.

        Args:
            base_url: Base URL of the backend functions
            credential_provider: Source of the session's bearer token
            api_key: API identity sent as the ``apikey`` header
            rate_limiter: Client-side quota tracker (created if omitted)
            publisher: Telemetry broadcast target (created if omitted)
            http_client: Optional shared HTTP client for connection pooling
            default_options: Options used when ``send`` gets none
        """
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.credential_provider = credential_provider
        self.rate_limiter = rate_limiter or ClientRateLimiter()
        self.publisher = publisher or TelemetryPublisher()
        self.default_options = default_options or RequestOptions()
        self._http_client = http_client
        self._owns_http_client = http_client is None

    @classmethod
    def from_settings(
        cls,
        credential_provider: CredentialProvider,
        config: Optional[Settings] = None,
        **kwargs: Any,
    ) -> "AuthenticatedRequestClient":
        config = config or default_settings
        kwargs.setdefault("rate_limiter", ClientRateLimiter.from_settings(config))
        kwargs.setdefault("default_options", RequestOptions.from_settings(config))
        return cls(
            base_url=config.backend_base_url,
            credential_provider=credential_provider,
            api_key=config.backend_api_key,
            **kwargs,
        )

    def _get_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = create_http_client()
            self._owns_http_client = True
        return self._http_client

    async def aclose(self) -> None:
        if self._owns_http_client and self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    async def __aenter__(self) -> "AuthenticatedRequestClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    def _log_state(self, state: RequestState, log_extra: Dict[str, Any]) -> None:
        logger.debug(f"Request '{log_extra.get('endpoint')}' -> {state.value}", extra=log_extra)

    def _get_endpoint_url(self, endpoint: str) -> str:
        return f"{self.base_url}/{endpoint.lstrip('/')}"

    def _build_headers(self, endpoint: str, token: str, request_id: str) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {token}",
            "apikey": self.api_key,
            CLIENT_REMAINING_HEADER: str(self.rate_limiter.get_remaining_requests(endpoint)),
            REQUEST_ID_HEADER: request_id,
        }

    async def send(
        self,
        endpoint: str,
        body: Any,
        options: Optional[RequestOptions] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> Any:
        """Send one logical request, retrying transient failures.

        Args:
            endpoint: Logical endpoint name (also the rate-limit key)
            body: JSON-serializable request body
            options: Per-call options (client defaults when omitted)
            cancel_token: Optional handle to abort the call

        Returns:
            Parsed JSON (or text when ``response_type="text"``)

        Raises:
            ClientRateLimitExceeded: Local quota exhausted (no network call)
            NoActiveSession: No credential available (no network call)
            RequestAborted: Timed out or cancelled
            ServerRateLimited: Backend answered 429
            HttpError: Any other non-2xx status
            NetworkError: No response received
        """
        options = options or self.default_options
        policy = options.retry_policy()
        request_id = uuid.uuid4().hex

        for attempt in range(policy.max_retries + 1):
            try:
                return await self._attempt(
                    endpoint, body, options, cancel_token, request_id, attempt + 1
                )
            except DashboardClientError as e:
                if not policy.is_retryable(e) or attempt >= policy.max_retries:
                    raise

                delay = policy.calculate_delay(attempt)
                logger.warning(
                    f"Retry {attempt + 1}/{policy.max_retries} for '{endpoint}' "
                    f"after {e.kind.value}: {e}. Waiting {delay:.2f}s...",
                    extra=get_log_context(
                        request_id=request_id,
                        endpoint=endpoint,
                        attempt=attempt + 1,
                        error_kind=e.kind.value,
                    ),
                )
                await self._sleep_before_retry(delay, cancel_token)

        # Unreachable: the last attempt either returns or raises.
        raise RuntimeError("retry loop exited without a result")

    async def _attempt(
        self,
        endpoint: str,
        body: Any,
        options: RequestOptions,
        cancel_token: Optional[CancellationToken],
        request_id: str,
        attempt: int,
    ) -> Any:
        log_extra = get_log_context(request_id=request_id, endpoint=endpoint, attempt=attempt)
        self._log_state(RequestState.IDLE, log_extra)

        if not self.rate_limiter.can_make_request(endpoint):
            raise ClientRateLimitExceeded(
                endpoint, reset_in=self.rate_limiter.get_reset_in(endpoint)
            )
        self._log_state(RequestState.RATE_LIMIT_CHECKED, log_extra)

        credential = await self.credential_provider.get_current_credential()
        if credential is None:
            logger.info(f"No active session for '{endpoint}'", extra=log_extra)
            raise NoActiveSession()
        self._log_state(RequestState.CREDENTIAL_RESOLVED, log_extra)

        if cancel_token is not None and cancel_token.cancelled:
            raise RequestAborted(RequestAborted.CANCELLED)

        headers = self._build_headers(endpoint, credential.token, request_id)
        self._log_state(RequestState.IN_FLIGHT, log_extra)

        started = time.perf_counter()
        try:
            response = await self._race(
                self._post(endpoint, headers, body, options.timeout),
                options.timeout,
                cancel_token,
            )
            result = self._handle_response(response, options.response_type)
        except DashboardClientError as e:
            state = _FAILURE_STATES.get(type(e), RequestState.NETWORK_FAILED)
            logger.debug(
                f"Request '{endpoint}' {state.value}: {e}",
                extra={
                    **log_extra,
                    "error_kind": e.kind.value,
                    "duration_ms": round((time.perf_counter() - started) * 1000, 2),
                },
            )
            raise

        state = RequestState.SUCCEEDED
        logger.debug(
            f"Request '{endpoint}' {state.value}",
            extra={
                **log_extra,
                "status_code": response.status_code,
                "duration_ms": round((time.perf_counter() - started) * 1000, 2),
            },
        )
        return result

    async def _post(
        self, endpoint: str, headers: Dict[str, str], body: Any, timeout: float
    ) -> httpx.Response:
        client = self._get_client()
        # httpx sends no body for json=None
        payload = {"content": b"null"} if body is None else {"json": body}
        try:
            return await client.post(
                self._get_endpoint_url(endpoint),
                headers=headers,
                timeout=timeout,
                **payload,
            )
        except httpx.TimeoutException as e:
            raise RequestAborted(RequestAborted.TIMEOUT, timeout) from e
        except httpx.HTTPError as e:
            raise NetworkError(f"{type(e).__name__}: {e}", cause=e) from e

    async def _race(
        self,
        call: Awaitable[httpx.Response],
        timeout: float,
        cancel_token: Optional[CancellationToken],
    ) -> httpx.Response:
        """Await ``call`` unless the timeout or the cancel token wins first."""
        request_task = asyncio.ensure_future(call)
        waiters = {request_task}
        cancel_task: Optional[asyncio.Future] = None
        if cancel_token is not None:
            cancel_task = asyncio.ensure_future(cancel_token.wait())
            waiters.add(cancel_task)

        try:
            done, _ = await asyncio.wait(
                waiters, timeout=timeout, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            if cancel_task is not None:
                cancel_task.cancel()
            if not request_task.done():
                request_task.cancel()
                await asyncio.gather(request_task, return_exceptions=True)

        if request_task in done:
            return request_task.result()
        if cancel_task is not None and cancel_task in done:
            raise RequestAborted(RequestAborted.CANCELLED)
        raise RequestAborted(RequestAborted.TIMEOUT, timeout)

    def _handle_response(self, response: httpx.Response, response_type: str) -> Any:
        telemetry = parse_rate_limit_headers(response.headers)
        if telemetry is not None:
            self.publisher.publish(telemetry)

        if response.status_code == 429:
            raise ServerRateLimited(_parse_retry_after(response.headers.get("Retry-After")))

        if not response.is_success:
            raise HttpError(response.status_code, _error_message(response))

        if response_type == "text":
            return response.text
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise HttpError(response.status_code, "Invalid JSON response") from e

    async def _sleep_before_retry(
        self, delay: float, cancel_token: Optional[CancellationToken]
    ) -> None:
        if cancel_token is None:
            await _sleep(delay)
            return
        try:
            await asyncio.wait_for(cancel_token.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return
        raise RequestAborted(RequestAborted.CANCELLED)

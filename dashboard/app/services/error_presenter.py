"""Maps classified request errors to user-facing messages.

Messages never echo raw error text; the log record carries only the
context, kind and exception type.
"""

import math
from dataclasses import dataclass
from typing import Optional

from dashboard.app.core.logging import get_logger
from dashboard.app.exceptions import (
    ClientRateLimitExceeded,
    DashboardClientError,
    HttpError,
    NoActiveSession,
    RequestAborted,
    ServerRateLimited,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class UserMessage:
    """What the presentation layer should show.

    ``action`` is one of "retry", "wait", "reauthenticate" or "none".
    """
    title: str
    description: str
    action: str = "retry"
    retry_after: Optional[int] = None


def _in_context(context: Optional[str]) -> str:
    return f" in {context}" if context else ""


def _present_http_error(error: HttpError, context: Optional[str]) -> UserMessage:
    if error.status_code in (401, 403):
        return UserMessage(
            title="Access denied",
            description="You do not have permission to perform this action.",
            action="none",
        )
    if error.status_code == 404:
        return UserMessage(
            title="Not found",
            description=f"The requested resource was not found{_in_context(context)}.",
            action="none",
        )
    if error.status_code in (500, 502, 503):
        return UserMessage(
            title="Server error",
            description="The server is having problems. Please try again later.",
        )
    return UserMessage(
        title="Unexpected error",
        description="An unexpected error occurred. Please try again.",
    )


def present_error(error: BaseException, context: Optional[str] = None) -> UserMessage:
    """Build the user-facing message for a failed request.

    Args:
        error: The exception raised by the request client (or anything else)
        context: Optional page or feature name, e.g. "treasury"
    """
    kind = getattr(getattr(error, "kind", None), "value", "unknown")
    logger.error(
        f"[API Error] context={context or 'API'} kind={kind} type={type(error).__name__}",
        extra={"error_kind": kind},
    )

    if isinstance(error, ServerRateLimited):
        minutes = max(1, math.ceil(error.retry_after / 60))
        return UserMessage(
            title="Too many requests",
            description=(
                "You have reached the request limit. Please wait "
                f"{minutes} minute{'s' if minutes > 1 else ''} before trying again."
            ),
            action="wait",
            retry_after=error.retry_after,
        )

    if isinstance(error, ClientRateLimitExceeded):
        return UserMessage(
            title="Too many requests",
            description="Too many requests. Please wait a moment.",
            action="wait",
            retry_after=math.ceil(error.reset_in) if error.reset_in else None,
        )

    if isinstance(error, RequestAborted):
        if error.reason == RequestAborted.CANCELLED:
            return UserMessage(title="Request cancelled", description="", action="none")
        return UserMessage(
            title="Request timed out",
            description="The operation took too long. Please try again.",
        )

    if isinstance(error, NoActiveSession):
        return UserMessage(
            title="Session expired",
            description="Your session has expired. Please sign in again.",
            action="reauthenticate",
        )

    if isinstance(error, HttpError):
        return _present_http_error(error, context)

    if isinstance(error, DashboardClientError):
        return UserMessage(
            title="Connection problem",
            description="Could not reach the server. Please check your connection and try again.",
        )

    return UserMessage(
        title="Server error",
        description=f"The operation could not be completed{_in_context(context)}. Please try again later.",
    )

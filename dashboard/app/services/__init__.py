"""Services package for the dashboard client.

This package provides:
- The authenticated request client and its retry policy
- Credential providers
- Error presentation and rate-limit indicator state
"""

from dashboard.app.services.credentials import (
    CallableCredentialProvider,
    Credential,
    CredentialProvider,
    StaticCredentialProvider,
)
from dashboard.app.services.error_presenter import UserMessage, present_error
from dashboard.app.services.rate_limit_indicator import RateLimitIndicator
from dashboard.app.services.request_client import (
    AuthenticatedRequestClient,
    CancellationToken,
    RequestOptions,
    RequestState,
)
from dashboard.app.services.retry import RetryPolicy

__all__ = [
    "AuthenticatedRequestClient",
    "CallableCredentialProvider",
    "CancellationToken",
    "Credential",
    "CredentialProvider",
    "RateLimitIndicator",
    "RequestOptions",
    "RequestState",
    "RetryPolicy",
    "StaticCredentialProvider",
    "UserMessage",
    "present_error",
]

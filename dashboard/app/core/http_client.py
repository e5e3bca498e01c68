"""Shared HTTP client management for connection pooling.

The application shell opens one ``httpx.AsyncClient`` for its lifetime and
hands it to every request client, so connections to the backend functions
are reused across endpoints.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import httpx

from dashboard.app.core.config import settings


_shared_http_client: httpx.AsyncClient | None = None


def get_http_client() -> httpx.AsyncClient:
    """Get the shared HTTP client instance.

    Raises:
        RuntimeError: If the HTTP client has not been initialized.
    """
    if _shared_http_client is None:
        raise RuntimeError(
            "HTTP client not initialized. Ensure init_http_client() is active."
        )
    return _shared_http_client


def _build_limits(**kwargs) -> httpx.Limits:
    return httpx.Limits(
        max_connections=kwargs.get("max_connections", settings.httpx_max_connections),
        max_keepalive_connections=kwargs.get(
            "max_keepalive_connections", settings.httpx_max_keepalive_connections
        ),
        keepalive_expiry=kwargs.get("keepalive_expiry", settings.httpx_keepalive_expiry),
    )


def _build_timeout(**kwargs) -> httpx.Timeout:
    # - connect: Time to establish socket connection
    # - read: Time to read response data
    # - write: Time to send request data
    # - pool: Time to acquire connection from pool
    timeout_override = kwargs.get("timeout")
    if timeout_override is not None:
        return httpx.Timeout(timeout_override)
    return httpx.Timeout(
        connect=kwargs.get("connect_timeout", settings.httpx_connect_timeout),
        read=kwargs.get("read_timeout", settings.httpx_read_timeout),
        write=kwargs.get("write_timeout", settings.httpx_write_timeout),
        pool=kwargs.get("pool_timeout", settings.httpx_pool_timeout),
    )


@asynccontextmanager
async def init_http_client() -> AsyncGenerator[httpx.AsyncClient, None]:
    """Initialize and yield the shared HTTP client.

        async with init_http_client() as http:
            client = AuthenticatedRequestClient.from_settings(provider, http_client=http)
            ...
    """
    global _shared_http_client

    _shared_http_client = httpx.AsyncClient(
        timeout=_build_timeout(), limits=_build_limits()
    )

    try:
        yield _shared_http_client
    finally:
        if _shared_http_client is not None:
            await _shared_http_client.aclose()
            _shared_http_client = None


def create_http_client(**kwargs) -> httpx.AsyncClient:
    """Create a new HTTP client with default settings.

    The returned client should be closed when done:
        async with create_http_client() as client:
            ...

    Args:
        **kwargs: Override default settings. Can include:
            - timeout: Single timeout value (overrides all granular timeouts)
            - connect_timeout, read_timeout, write_timeout, pool_timeout
            - max_connections, max_keepalive_connections, keepalive_expiry
            - transport: Custom transport (e.g. httpx.MockTransport in tests)

    Returns:
        A new httpx.AsyncClient instance.
    """
    config = {
        "timeout": _build_timeout(**kwargs),
        "limits": _build_limits(**kwargs),
    }
    if kwargs.get("transport") is not None:
        config["transport"] = kwargs["transport"]
    return httpx.AsyncClient(**config)

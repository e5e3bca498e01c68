"""Tests for mapping classified errors to user-facing messages."""

import pytest

from dashboard.app.exceptions import (
    ClientRateLimitExceeded,
    HttpError,
    NetworkError,
    NoActiveSession,
    RequestAborted,
    ServerRateLimited,
)
from dashboard.app.services.error_presenter import present_error


class TestPresentError:
    """Each error kind maps to a message without leaking raw text."""

    @pytest.mark.parametrize(
        ("retry_after", "expected"),
        [(60, "1 minute "), (30, "1 minute "), (61, "2 minutes"), (300, "5 minutes")],
    )
    def test_server_rate_limit_shows_minutes(self, retry_after, expected):
        message = present_error(ServerRateLimited(retry_after))

        assert expected in message.description
        assert message.action == "wait"
        assert message.retry_after == retry_after

    def test_client_rate_limit(self):
        message = present_error(ClientRateLimitExceeded("odoo-dashboard", reset_in=42.2))

        assert message.action == "wait"
        assert message.retry_after == 43

    def test_timeout(self):
        message = present_error(RequestAborted(RequestAborted.TIMEOUT, 30))

        assert message.title == "Request timed out"
        assert message.action == "retry"

    def test_cancelled_needs_no_message(self):
        message = present_error(RequestAborted(RequestAborted.CANCELLED))

        assert message.action == "none"

    def test_no_session_prompts_reauthentication(self):
        message = present_error(NoActiveSession())

        assert message.title == "Session expired"
        assert message.action == "reauthenticate"

    @pytest.mark.parametrize("status", [401, 403])
    def test_access_denied(self, status):
        assert present_error(HttpError(status, "jwt expired")).title == "Access denied"

    def test_not_found_mentions_context(self):
        message = present_error(HttpError(404, "no such company"), context="treasury")

        assert message.title == "Not found"
        assert "treasury" in message.description

    @pytest.mark.parametrize("status", [500, 502, 503])
    def test_server_errors(self, status):
        assert present_error(HttpError(status, "odoo down")).title == "Server error"

    def test_other_http_error_is_generic(self):
        assert present_error(HttpError(418, "teapot")).title == "Unexpected error"

    def test_network_error(self):
        assert present_error(NetworkError("dns failure")).title == "Connection problem"

    def test_unknown_exception_fallback(self):
        message = present_error(RuntimeError("Traceback secret"), context="payroll")

        assert "payroll" in message.description
        assert "secret" not in message.description

    def test_raw_error_text_never_leaks(self):
        message = present_error(HttpError(500, "password=hunter2"))

        assert "hunter2" not in message.title
        assert "hunter2" not in message.description

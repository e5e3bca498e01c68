import pytest
from pydantic import ValidationError

from dashboard.app.core.config import Settings


def test_defaults_match_client_quota() -> None:
    settings = Settings(_env_file=None)

    assert settings.client_rate_limit_requests == 50
    assert settings.client_rate_limit_window_seconds == 300
    assert settings.request_timeout_seconds == 30
    assert settings.request_max_retries == 0
    assert settings.request_retry_delay_seconds == 1.0


def test_values_read_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("BACKEND_BASE_URL", "https://tenant.example/functions/v1/")
    monkeypatch.setenv("BACKEND_API_KEY", "anon-key")
    monkeypatch.setenv("CLIENT_RATE_LIMIT_REQUESTS", "10")

    settings = Settings(_env_file=None)

    assert settings.backend_base_url == "https://tenant.example/functions/v1"
    assert settings.backend_api_key == "anon-key"
    assert settings.client_rate_limit_requests == 10


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("CLIENT_RATE_LIMIT_REQUESTS", "0"),
        ("CLIENT_RATE_LIMIT_WINDOW_SECONDS", "0"),
        ("REQUEST_TIMEOUT_SECONDS", "-1"),
        ("REQUEST_MAX_RETRIES", "-1"),
        ("REQUEST_RETRY_DELAY_SECONDS", "-0.5"),
        ("REQUEST_RETRY_BACKOFF_FACTOR", "0.5"),
        ("LOG_FORMAT", "xml"),
    ],
)
def test_invalid_values_rejected(monkeypatch, name: str, value: str) -> None:
    monkeypatch.setenv(name, value)

    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_log_format_normalized(monkeypatch) -> None:
    monkeypatch.setenv("LOG_FORMAT", " JSON ")

    assert Settings(_env_file=None).log_format == "json"

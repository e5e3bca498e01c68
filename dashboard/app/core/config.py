from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _normalize_base_url(raw: str) -> str:
    return str(raw or "").strip().rstrip("/")


class Settings(BaseSettings):
    """Client settings loaded from environment variables.

    All settings can be configured via environment variables or .env file.
    """

    # Debug mode - forces the dashboard loggers to DEBUG (request state transitions)
    debug: bool = False

    # Backend (serverless functions) settings
    backend_base_url: str = "http://localhost:54321/functions/v1"
    backend_api_key: str = ""  # anon key, sent as the apikey header

    # Client-side rate limiting (soft guard, not a security control)
    client_rate_limit_requests: int = 50
    client_rate_limit_window_seconds: float = 300.0  # 5 minutes

    # Per-request defaults
    request_timeout_seconds: float = 30.0
    request_max_retries: int = 0
    request_retry_delay_seconds: float = 1.0
    request_retry_backoff_factor: float = 1.0  # 1.0 keeps the delay fixed
    request_retry_on_timeout: bool = False

    # HTTP Client connection pool settings
    httpx_connect_timeout: float = 10.0  # Time to establish connection
    httpx_read_timeout: float = 60.0  # Time to read response data
    httpx_write_timeout: float = 10.0  # Time to send request data
    httpx_pool_timeout: float = 5.0  # Time to acquire connection from pool
    httpx_keepalive_expiry: float = 30.0
    httpx_max_connections: int = 20
    httpx_max_keepalive_connections: int = 10

    # Rate limit indicator: shown when fewer requests than this remain
    rate_limit_indicator_threshold: int = 20

    # Logging settings
    log_level: str = "INFO"
    log_format: str = "text"  # text | structured | json

    @field_validator("backend_base_url", mode="before")
    @classmethod
    def normalize_backend_base_url(cls, v: str) -> str:
        return _normalize_base_url(v)

    @field_validator("client_rate_limit_requests", "rate_limit_indicator_threshold")
    @classmethod
    def validate_limit_positive(cls, v: int) -> int:
        """Validate rate limit values are positive."""
        if v < 1:
            raise ValueError("Rate limit values must be at least 1")
        return v

    @field_validator(
        "client_rate_limit_window_seconds",
        "request_timeout_seconds",
        "httpx_connect_timeout",
        "httpx_read_timeout",
    )
    @classmethod
    def validate_duration_positive(cls, v: float) -> float:
        """Validate window and timeout values are positive."""
        if v <= 0:
            raise ValueError("Timeout and window values must be positive")
        return v

    @field_validator("request_max_retries")
    @classmethod
    def validate_retries_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("request_max_retries must not be negative")
        return v

    @field_validator("request_retry_delay_seconds")
    @classmethod
    def validate_retry_delay(cls, v: float) -> float:
        if v < 0:
            raise ValueError("request_retry_delay_seconds must not be negative")
        return v

    @field_validator("request_retry_backoff_factor")
    @classmethod
    def validate_backoff_factor(cls, v: float) -> float:
        if v < 1.0:
            raise ValueError("request_retry_backoff_factor must be at least 1.0")
        return v

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in ("text", "structured", "json"):
            raise ValueError("log_format must be one of: text, structured, json")
        return v

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


# Global settings instance
settings = Settings()

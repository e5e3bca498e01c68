"""Tests for rate-limit header parsing and telemetry broadcast."""

import httpx

from dashboard.app.ratelimit.models import RateLimitTelemetry
from dashboard.app.ratelimit.telemetry import (
    TelemetryPublisher,
    parse_rate_limit_headers,
)


class TestParseRateLimitHeaders:
    """Test building telemetry from response headers."""

    def test_all_headers_present(self):
        headers = httpx.Headers({
            "X-RateLimit-Limit": "100",
            "X-RateLimit-Remaining": "42",
            "X-RateLimit-Reset": "2026-10-18T12:00:00Z",
        })

        telemetry = parse_rate_limit_headers(headers)

        assert telemetry == RateLimitTelemetry(
            limit=100, remaining=42, reset_at="2026-10-18T12:00:00Z"
        )

    def test_header_names_case_insensitive(self):
        headers = httpx.Headers({"x-ratelimit-limit": "10", "x-ratelimit-remaining": "3"})

        telemetry = parse_rate_limit_headers(headers)

        assert telemetry.limit == 10
        assert telemetry.remaining == 3
        assert telemetry.reset_at == ""

    def test_missing_limit_header_returns_none(self):
        headers = httpx.Headers({"X-RateLimit-Remaining": "3"})

        assert parse_rate_limit_headers(headers) is None

    def test_malformed_numbers_parse_as_zero(self):
        headers = httpx.Headers({"X-RateLimit-Limit": "many", "X-RateLimit-Remaining": ""})

        telemetry = parse_rate_limit_headers(headers)

        assert telemetry.limit == 0
        assert telemetry.remaining == 0

    def test_numbers_parse_leading_integer(self):
        headers = httpx.Headers({"X-RateLimit-Limit": "100abc", "X-RateLimit-Remaining": " 7 req"})

        telemetry = parse_rate_limit_headers(headers)

        assert telemetry.limit == 100
        assert telemetry.remaining == 7

    def test_to_dict(self):
        telemetry = RateLimitTelemetry(limit=5, remaining=1, reset_at="soon")

        assert telemetry.to_dict() == {"limit": 5, "remaining": 1, "reset_at": "soon"}


class TestTelemetryPublisher:
    """Test observer registration and fan-out."""

    def test_observer_count_tracks_subscriptions(self):
        publisher = TelemetryPublisher()
        first, second = [], []

        unsubscribe_first = publisher.subscribe(first.append)
        publisher.subscribe(second.append)
        assert publisher.observer_count == 2

        unsubscribe_first()
        assert publisher.observer_count == 1

    def test_publish_reaches_every_observer(self):
        publisher = TelemetryPublisher()
        received_a, received_b = [], []
        publisher.subscribe(received_a.append)
        publisher.subscribe(received_b.append)
        telemetry = RateLimitTelemetry(limit=100, remaining=99)

        publisher.publish(telemetry)

        assert received_a == [telemetry]
        assert received_b == [telemetry]

    def test_unsubscribe_callable(self):
        publisher = TelemetryPublisher()
        received = []
        unsubscribe = publisher.subscribe(received.append)

        unsubscribe()
        publisher.publish(RateLimitTelemetry(limit=1, remaining=0))

        assert received == []
        assert publisher.observer_count == 0

    def test_duplicate_subscription_ignored(self):
        publisher = TelemetryPublisher()
        received = []
        publisher.subscribe(received.append)
        observer = received.append
        publisher.subscribe(observer)

        assert publisher.observer_count == 1

    def test_unsubscribe_unknown_observer_is_noop(self):
        publisher = TelemetryPublisher()

        publisher.unsubscribe(lambda telemetry: None)

        assert publisher.observer_count == 0

    def test_failing_observer_does_not_block_others(self):
        publisher = TelemetryPublisher()
        received = []

        def broken(telemetry):
            raise RuntimeError("observer bug")

        publisher.subscribe(broken)
        publisher.subscribe(received.append)

        publisher.publish(RateLimitTelemetry(limit=10, remaining=9))

        assert len(received) == 1

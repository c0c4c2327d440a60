"""Unit tests for the HTTP rate limiting helpers."""

from unittest.mock import Mock

import pytest

from discovery_core.core.rate_limit import (
    RATE_LIMITS,
    build_rate_limit_key,
    client_ip,
    tier_for_path,
)


def _request(headers: dict[str, str] | None = None, host: str | None = "10.0.0.1") -> Mock:
    request = Mock()
    request.headers = {k.lower(): v for k, v in (headers or {}).items()}
    request.client = Mock(host=host) if host else None
    return request


def test_presets_match_published_budgets() -> None:
    assert {name: preset.limit for name, preset in RATE_LIMITS.items()} == {
        "ai": 10,
        "translation": 50,
        "places": 100,
        "chat": 60,
        "mutation": 30,
    }
    assert all(preset.window_ms == 3_600_000 for preset in RATE_LIMITS.values())


@pytest.mark.parametrize(
    ("path", "tier"),
    [
        ("/v1/places/sync", "mutation"),
        ("/v1/places/nearby", "places"),
        ("/v1/places/photo", "places"),
        ("/v1/places", "places"),
        ("/v1/placesx", None),
        ("/health", None),
        ("/", None),
    ],
)
def test_tier_for_path(path: str, tier: str | None) -> None:
    assert tier_for_path(path) == tier


def test_key_uses_first_two_path_segments() -> None:
    assert build_rate_limit_key("1.2.3.4", "/v1/places/nearby") == "ip:1.2.3.4:/v1/places"
    assert build_rate_limit_key("1.2.3.4", "/v1/places/sync") == "ip:1.2.3.4:/v1/places"
    assert build_rate_limit_key("1.2.3.4", "/health") == "ip:1.2.3.4:/health"


def test_client_ip_prefers_forwarded_for() -> None:
    request = _request({"X-Forwarded-For": "203.0.113.7, 10.0.0.2", "X-Real-IP": "198.51.100.1"})

    assert client_ip(request) == "203.0.113.7"


def test_client_ip_falls_back_to_real_ip_then_peer() -> None:
    assert client_ip(_request({"X-Real-IP": "198.51.100.1"})) == "198.51.100.1"
    assert client_ip(_request()) == "10.0.0.1"
    assert client_ip(_request(host=None)) == "unknown"

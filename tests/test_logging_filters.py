"""Tests for sensitive data filtering and request correlation in logs."""

from __future__ import annotations

import json
import logging
from io import StringIO

import pytest

from discovery_core.core.logging import (
    JsonFormatter,
    RequestIdFilter,
    SensitiveDataFilter,
    clear_request_id,
    mask_url_secrets,
    set_request_id,
)


@pytest.fixture
def capture():
    """Logger wired to an in-memory stream through the production filters."""

    logger = logging.getLogger("test_redaction")
    logger.setLevel(logging.INFO)
    logger.handlers.clear()
    logger.propagate = False

    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.addFilter(RequestIdFilter())
    handler.addFilter(SensitiveDataFilter())
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)

    yield logger, stream

    logger.handlers.clear()
    clear_request_id()


def test_sensitive_filter_redacts_provider_and_storage_credentials(capture):
    logger, stream = capture

    logger.info(
        "adapter_event",
        extra={
            "key": "AIza-google-key",
            "apikey": "supabase-anon",
            "service_role_key": "service-role-secret",
            "safe_field": "visible",
        },
    )

    output = stream.getvalue()
    assert "AIza-google-key" not in output
    assert "supabase-anon" not in output
    assert "service-role-secret" not in output
    assert "[REDACTED]" in output
    assert "visible" in output


def test_sensitive_filter_allows_safe_fields(capture):
    logger, stream = capture

    logger.info(
        "sync.page_fetched",
        extra={"search": "beach club", "page": 2, "results": 20, "cache_key": "places:nearby:1"},
    )

    record = json.loads(stream.getvalue())
    assert record["search"] == "beach club"
    assert record["results"] == 20
    assert record["cache_key"] == "places:nearby:1"
    assert "[REDACTED]" not in stream.getvalue()


def test_sensitive_filter_redacts_nested_dicts(capture):
    logger, stream = capture

    logger.info(
        "nested_event",
        extra={
            "headers": {"Authorization": "Bearer secret-token", "user-agent": "pytest"},
            "params": [{"key": "AIza-nested"}],
        },
    )

    output = stream.getvalue()
    assert "secret-token" not in output
    assert "AIza-nested" not in output
    assert "pytest" in output


def test_request_id_is_attached_from_context(capture):
    logger, stream = capture
    set_request_id("req-42")

    logger.info("with_request")

    assert json.loads(stream.getvalue())["request_id"] == "req-42"


def test_exception_info_is_serialized(capture):
    logger, stream = capture

    try:
        raise RuntimeError("photo upload failed")
    except RuntimeError:
        logger.warning("photo_cache.failed", exc_info=True)

    record = json.loads(stream.getvalue())
    assert "photo upload failed" in record["exc_info"]


def test_provider_key_is_masked_inside_urls(capture):
    logger, stream = capture

    logger.info(
        "GET https://maps.googleapis.com/maps/api/place/details/json?place_id=p1&key=AIza-in-url",
        extra={"url": "https://maps.googleapis.com/maps/api/place/photo?maxwidth=400&key=AIza-extra"},
    )

    output = stream.getvalue()
    assert "AIza-in-url" not in output
    assert "AIza-extra" not in output
    record = json.loads(output)
    assert record["url"].endswith("maxwidth=400&key=[REDACTED]")
    assert "place_id=p1" in record["message"]


def test_mask_url_secrets_leaves_plain_text_alone():
    assert mask_url_secrets("key lime pie") == "key lime pie"
    assert mask_url_secrets("/rest/v1/api_cache?apikey=abc&select=*") == "/rest/v1/api_cache?apikey=[REDACTED]&select=*"

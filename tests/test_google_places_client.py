"""Tests for the Google Places adapter over a mocked HTTP transport."""

import httpx
import pytest

from discovery_core.adapters.places.factory import create_places_client
from discovery_core.adapters.places.google_places import GooglePlacesClient
from discovery_core.core.config import GooglePlacesSettings
from discovery_core.core.errors import PlacesAppError, ValidationAppError
from discovery_core.schemas.venue import GeoPoint

BASE = "https://places.test/api/place"
CENTER = GeoPoint(lat=20.2114, lng=-87.4654)


def _client(handler) -> tuple[GooglePlacesClient, list[httpx.Request]]:
    seen: list[httpx.Request] = []

    def _record(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return handler(request)

    http = httpx.AsyncClient(transport=httpx.MockTransport(_record))
    return GooglePlacesClient("secret-key", base_url=BASE, http_client=http), seen


class TestSearch:
    @pytest.mark.asyncio
    async def test_builds_request_and_parses_page(self) -> None:
        client, seen = _client(
            lambda r: httpx.Response(
                200,
                json={"status": "OK", "results": [{"place_id": "a"}], "next_page_token": "tok"},
            )
        )

        page = await client.search(CENTER, 10_000, keyword="beach club", page_token="prev")

        assert page.results == [{"place_id": "a"}]
        assert page.next_page_token == "tok"
        request = seen[0]
        assert request.url.path == "/api/place/nearbysearch/json"
        params = request.url.params
        assert params["location"] == "20.2114,-87.4654"
        assert params["radius"] == "10000"
        assert params["keyword"] == "beach club"
        assert params["pagetoken"] == "prev"
        assert params["key"] == "secret-key"
        assert "type" not in params

    @pytest.mark.asyncio
    async def test_zero_results_is_an_empty_page(self) -> None:
        client, _ = _client(lambda r: httpx.Response(200, json={"status": "ZERO_RESULTS", "results": []}))

        page = await client.search(CENTER, 500, place_type="museum")

        assert page.results == []
        assert page.next_page_token is None

    @pytest.mark.asyncio
    async def test_error_status_raises(self) -> None:
        client, _ = _client(
            lambda r: httpx.Response(
                200, json={"status": "OVER_QUERY_LIMIT", "error_message": "quota exceeded"}
            )
        )

        with pytest.raises(PlacesAppError) as exc_info:
            await client.search(CENTER, 500)

        assert exc_info.value.code == "places_search_failed"
        assert exc_info.value.message == "quota exceeded"
        assert exc_info.value.details["provider_status"] == "OVER_QUERY_LIMIT"

    @pytest.mark.asyncio
    async def test_http_error_raises(self) -> None:
        client, _ = _client(lambda r: httpx.Response(503, text="unavailable"))

        with pytest.raises(PlacesAppError) as exc_info:
            await client.search(CENTER, 500)

        assert exc_info.value.code == "places_http_error"

    @pytest.mark.asyncio
    async def test_transport_error_raises(self) -> None:
        def _boom(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client, _ = _client(_boom)

        with pytest.raises(PlacesAppError) as exc_info:
            await client.search(CENTER, 500)

        assert exc_info.value.code == "places_unavailable"


class TestDetails:
    @pytest.mark.asyncio
    async def test_returns_result(self) -> None:
        client, seen = _client(
            lambda r: httpx.Response(200, json={"status": "OK", "result": {"name": "Cenote"}})
        )

        result = await client.details("abc", fields="name")

        assert result == {"name": "Cenote"}
        assert seen[0].url.params["fields"] == "name"
        assert seen[0].url.params["place_id"] == "abc"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", ["NOT_FOUND", "ZERO_RESULTS"])
    async def test_missing_place_returns_none(self, status: str) -> None:
        client, _ = _client(lambda r: httpx.Response(200, json={"status": status}))

        assert await client.details("gone") is None

    @pytest.mark.asyncio
    async def test_error_status_raises(self) -> None:
        client, _ = _client(lambda r: httpx.Response(200, json={"status": "REQUEST_DENIED"}))

        with pytest.raises(PlacesAppError) as exc_info:
            await client.details("abc")

        assert exc_info.value.code == "places_details_failed"

    @pytest.mark.asyncio
    async def test_empty_place_id_is_rejected(self) -> None:
        client, seen = _client(lambda r: httpx.Response(200, json={}))

        with pytest.raises(ValueError):
            await client.details("")
        assert seen == []


class TestPhotos:
    @pytest.mark.asyncio
    async def test_fetch_photo_returns_bytes(self) -> None:
        client, seen = _client(lambda r: httpx.Response(200, content=b"\xff\xd8jpeg"))

        data = await client.fetch_photo("ref-1", 400)

        assert data == b"\xff\xd8jpeg"
        assert seen[0].url.params["maxwidth"] == "400"
        assert seen[0].url.params["photo_reference"] == "ref-1"

    @pytest.mark.asyncio
    async def test_fetch_photo_failure_raises(self) -> None:
        client, _ = _client(lambda r: httpx.Response(404))

        with pytest.raises(PlacesAppError) as exc_info:
            await client.fetch_photo("ref-1", 400)

        assert exc_info.value.code == "places_photo_failed"

    def test_photo_url_encodes_reference(self) -> None:
        client = GooglePlacesClient("secret-key", base_url=BASE)

        url = httpx.URL(client.photo_url("a b/c", 800))

        assert str(url).startswith(f"{BASE}/photo?")
        assert url.params["photo_reference"] == "a b/c"
        assert url.params["maxwidth"] == "800"
        assert url.params["key"] == "secret-key"


def test_factory_requires_api_key() -> None:
    with pytest.raises(ValidationAppError) as exc_info:
        create_places_client(GooglePlacesSettings(api_key=None))

    assert exc_info.value.code == "places_missing_api_key"


def test_factory_builds_google_client() -> None:
    client = create_places_client(GooglePlacesSettings(api_key="k", base_url=BASE))

    assert isinstance(client, GooglePlacesClient)

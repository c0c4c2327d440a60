"""Supabase storage backend over its REST APIs (PostgREST and Storage).

Expected schema:
- ``venues``: one row per place_id, written through the
  ``upsert_venue_from_google`` RPC (INSERT ... ON CONFLICT (place_id) DO UPDATE,
  leaving ``photo_url`` untouched), plus a nullable ``photo_url`` column.
- ``api_cache``: ``key text primary key, data jsonb, timestamp bigint``.
- a public storage bucket for venue photos.

All calls use the service role key; this module must only run server-side.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from discovery_core.adapters.storage.base import (
    AbstractBlobStore,
    AbstractCacheStore,
    AbstractVenueStore,
)
from discovery_core.core.errors import StorageAppError
from discovery_core.schemas.venue import VenueRecord

logger = logging.getLogger(__name__)

_ALREADY_EXISTS = "The resource already exists"


def create_supabase_http_client(url: str, service_role_key: str, *, timeout_seconds: float = 10.0) -> httpx.AsyncClient:
    """Build an async HTTP client authenticated with the service role key."""
    return httpx.AsyncClient(
        base_url=url.rstrip("/"),
        headers={
            "apikey": service_role_key,
            "Authorization": f"Bearer {service_role_key}",
        },
        timeout=httpx.Timeout(timeout_seconds),
    )


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class _SupabaseResource:
    """Shared request plumbing: maps transport and HTTP failures to StorageAppError."""

    def __init__(self, http_client: httpx.AsyncClient) -> None:
        self._http = http_client

    async def _request(self, method: str, path: str, *, operation: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._http.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            raise StorageAppError(
                code="storage_unavailable",
                message=f"{operation} failed: {exc}",
            ) from exc

        if response.status_code >= 400:
            raise StorageAppError(
                code="storage_rejected",
                message=f"{operation} failed with HTTP {response.status_code}: {response.text[:200]}",
                details={"http_status": response.status_code},
            )
        return response


class SupabaseVenueStore(_SupabaseResource, AbstractVenueStore):
    def __init__(
        self,
        http_client: httpx.AsyncClient,
        *,
        table: str = "venues",
        upsert_function: str = "upsert_venue_from_google",
    ) -> None:
        super().__init__(http_client)
        self._table = table
        self._upsert_function = upsert_function

    @staticmethod
    def _rpc_params(venue: VenueRecord) -> dict[str, Any]:
        return {
            "p_place_id": venue.place_id,
            "p_name": venue.name,
            "p_category": venue.category,
            "p_lat": venue.location.lat,
            "p_lng": venue.location.lng,
            "p_rating": venue.rating,
            "p_price_level": venue.price_level,
            "p_formatted_address": venue.formatted_address,
            "p_phone": venue.phone,
            "p_website": venue.website,
            "p_description": venue.description,
            "p_google_data": venue.google_data,
            "p_last_synced_at": venue.last_synced_at.isoformat() if venue.last_synced_at else None,
        }

    async def upsert_venue(self, venue: VenueRecord) -> None:
        await self._request(
            "POST",
            f"/rest/v1/rpc/{self._upsert_function}",
            operation=f"Upsert venue {venue.place_id}",
            json=self._rpc_params(venue),
        )
        logger.debug("storage.venue_upserted", extra={"place_id": venue.place_id})

    async def get_venue_photo_url(self, place_id: str) -> str | None:
        response = await self._request(
            "GET",
            f"/rest/v1/{self._table}",
            operation=f"Read photo_url for {place_id}",
            params={"select": "photo_url", "place_id": f"eq.{place_id}", "limit": 1},
        )
        rows = response.json() or []
        return rows[0].get("photo_url") if rows else None

    async def set_venue_photo_url(self, place_id: str, url: str) -> None:
        await self._request(
            "PATCH",
            f"/rest/v1/{self._table}",
            operation=f"Update photo_url for {place_id}",
            params={"place_id": f"eq.{place_id}"},
            json={"photo_url": url},
            headers={"Prefer": "return=minimal"},
        )


class SupabaseCacheStore(_SupabaseResource, AbstractCacheStore):
    def __init__(self, http_client: httpx.AsyncClient, *, table: str = "api_cache") -> None:
        super().__init__(http_client)
        self._path = f"/rest/v1/{table}"

    async def get(self, key: str) -> dict[str, Any] | None:
        response = await self._request(
            "GET",
            self._path,
            operation="Cache read",
            params={"select": "data,timestamp", "key": f"eq.{key}", "limit": 1},
        )
        rows = response.json() or []
        return rows[0] if rows else None

    async def put(self, key: str, entry: dict[str, Any]) -> None:
        await self._request(
            "POST",
            self._path,
            operation="Cache write",
            json={"key": key, "data": entry["data"], "timestamp": entry["timestamp"]},
            headers={"Prefer": "resolution=merge-duplicates,return=minimal"},
        )

    async def delete(self, key: str) -> None:
        await self._request(
            "DELETE",
            self._path,
            operation="Cache delete",
            params={"key": f"eq.{key}"},
        )

    async def delete_prefix(self, prefix: str) -> int:
        response = await self._request(
            "DELETE",
            self._path,
            operation="Cache prefix delete",
            params={"key": f"like.{_escape_like(prefix)}*", "select": "key"},
            headers={"Prefer": "return=representation"},
        )
        return len(response.json() or [])


class SupabaseBlobStore(_SupabaseResource, AbstractBlobStore):
    def __init__(self, http_client: httpx.AsyncClient) -> None:
        super().__init__(http_client)

    async def ensure_container(self, name: str, *, public: bool = True) -> None:
        try:
            response = await self._http.post(
                "/storage/v1/bucket",
                json={"id": name, "name": name, "public": public},
            )
        except httpx.HTTPError as exc:
            raise StorageAppError(
                code="storage_unavailable",
                message=f"Create bucket {name} failed: {exc}",
            ) from exc

        if response.status_code < 400 or response.status_code == 409:
            return
        if _ALREADY_EXISTS in response.text:
            return
        raise StorageAppError(
            code="storage_bucket_failed",
            message=f"Failed to create bucket {name}: {response.text[:200]}",
            details={"http_status": response.status_code},
        )

    def public_url(self, container: str, key: str) -> str:
        base = str(self._http.base_url).rstrip("/")
        return f"{base}/storage/v1/object/public/{container}/{key}"

    async def put_object(
        self,
        container: str,
        key: str,
        data: bytes,
        *,
        content_type: str = "application/octet-stream",
    ) -> str:
        await self._request(
            "POST",
            f"/storage/v1/object/{container}/{key}",
            operation=f"Upload {container}/{key}",
            content=data,
            headers={"Content-Type": content_type, "x-upsert": "true"},
        )
        return self.public_url(container, key)

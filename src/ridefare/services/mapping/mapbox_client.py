"""HTTP client for the Mapbox geocoding and directions APIs."""

from __future__ import annotations

import asyncio
import logging
from typing import Any
from urllib.parse import quote

import httpx

from ...config import settings
from ...errors import AddressResolutionError, ProviderNotConfigured, RouteComputationError
from ...models.domain import Coordinate, RouteEstimate

logger = logging.getLogger(__name__)


def parse_first_coordinate(data: dict[str, Any]) -> Coordinate | None:
    """Return the top feature of a geocoding answer; later features are ignored."""
    features = data.get("features") or []
    if not features:
        return None
    feature = features[0]
    center = feature.get("center") or (feature.get("geometry") or {}).get("coordinates")
    if not center or len(center) < 2:
        return None
    return Coordinate(longitude=float(center[0]), latitude=float(center[1]))


def parse_first_place_name(data: dict[str, Any]) -> str | None:
    features = data.get("features") or []
    if not features:
        return None
    return features[0].get("place_name")


def parse_first_route(data: dict[str, Any]) -> RouteEstimate | None:
    routes = data.get("routes") or []
    if not routes:
        return None
    route = routes[0]
    geometry = route.get("geometry") or {}
    path = tuple(
        Coordinate(longitude=float(lon), latitude=float(lat))
        for lon, lat, *_ in geometry.get("coordinates") or []
    )
    return RouteEstimate(
        distance_meters=float(route["distance"]),
        duration_seconds=float(route["duration"]),
        path=path,
    )


class MapboxClient:
    def __init__(
        self,
        token: str | None = None,
        base_url: str | None = None,
        profile: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
    ) -> None:
        self.token = token or settings.mapbox_token
        if not self.token:
            raise ProviderNotConfigured("Mapbox token is not configured.")
        self.base_url = (base_url or settings.mapbox_base_url).rstrip("/")
        self.profile = profile or settings.mapbox_profile
        self.timeout = timeout if timeout is not None else settings.provider_timeout_seconds
        self.max_retries = max_retries if max_retries is not None else settings.mapbox_max_retries
        self.backoff_seconds = backoff_seconds if backoff_seconds is not None else settings.mapbox_backoff_seconds

    async def _get(self, path: str, params: dict[str, Any]) -> httpx.Response:
        """GET with retries on transport failures; HTTP error statuses are returned as-is."""
        url = f"{self.base_url}{path}"
        query = {**params, "access_token": self.token}
        attempt = 0
        async with httpx.AsyncClient(timeout=httpx.Timeout(self.timeout)) as client:
            while True:
                try:
                    return await client.get(url, params=query)
                except httpx.TransportError as exc:
                    attempt += 1
                    if attempt > self.max_retries:
                        logger.warning(f"Mapbox request to {path} failed after {attempt} attempt(s): {exc!r}")
                        raise
                    wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                    logger.debug(
                        f"Mapbox transport error, retrying in {wait_time:.1f}s "
                        f"(attempt {attempt}/{self.max_retries}): {exc!r}"
                    )
                    await asyncio.sleep(wait_time)

    async def geocode_raw(self, query: str) -> httpx.Response:
        return await self._get(f"/geocoding/v5/mapbox.places/{quote(query, safe='')}.json", {"limit": 1})

    async def reverse_geocode_raw(self, longitude: float, latitude: float) -> httpx.Response:
        return await self._get(f"/geocoding/v5/mapbox.places/{longitude},{latitude}.json", {"limit": 1})

    async def directions_raw(self, start: str, end: str) -> httpx.Response:
        """Directions between two ``lon,lat`` strings with full GeoJSON geometry."""
        return await self._get(
            f"/directions/v5/{self.profile}/{start};{end}",
            {"geometries": "geojson", "overview": "full"},
        )

    async def geocode(self, address: str) -> Coordinate | None:
        try:
            response = await self.geocode_raw(address)
            response.raise_for_status()
            return parse_first_coordinate(response.json())
        except (httpx.HTTPError, ValueError, KeyError) as exc:
            raise AddressResolutionError(address, f"Geocoding failed for '{address}': {exc}") from exc

    async def reverse_geocode(self, coordinate: Coordinate) -> str | None:
        try:
            response = await self.reverse_geocode_raw(coordinate.longitude, coordinate.latitude)
            response.raise_for_status()
            return parse_first_place_name(response.json())
        except (httpx.HTTPError, ValueError) as exc:
            raise AddressResolutionError(
                coordinate.as_lonlat(), f"Reverse geocoding failed for {coordinate.as_lonlat()}: {exc}"
            ) from exc

    async def directions(self, start: Coordinate, end: Coordinate) -> RouteEstimate | None:
        try:
            response = await self.directions_raw(start.as_lonlat(), end.as_lonlat())
            response.raise_for_status()
            return parse_first_route(response.json())
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as exc:
            raise RouteComputationError(f"Directions request failed: {exc}") from exc


async def check_health(client: MapboxClient | None = None) -> bool:
    """Check Mapbox reachability with a minimal geocoding request."""
    try:
        mapbox = client or MapboxClient()
        response = await mapbox.geocode_raw("Paris")
        return response.status_code == 200 and "features" in response.json()
    except (ProviderNotConfigured, httpx.HTTPError, ValueError):
        return False

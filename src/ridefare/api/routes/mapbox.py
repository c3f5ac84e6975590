"""Mapbox proxy endpoints; the browser never talks to Mapbox with its own credentials."""

from __future__ import annotations

from typing import Optional

import httpx
from fastapi import APIRouter, Query, status
from fastapi.responses import JSONResponse, Response

from ...config import settings
from ...errors import ProviderNotConfigured
from ...models.domain import Coordinate
from ...schemas.reservations import TokenResponse
from ...services.mapping.mapbox_client import MapboxClient

router = APIRouter(prefix="/mapbox", tags=["mapbox"])


def _bad_request(message: str) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": message})


def _passthrough(response: httpx.Response) -> Response:
    try:
        return JSONResponse(status_code=response.status_code, content=response.json())
    except ValueError:
        return Response(
            content=response.content,
            status_code=response.status_code,
            media_type=response.headers.get("content-type"),
        )


def _parse_lonlat(value: str) -> Optional[Coordinate]:
    parts = value.split(",")
    if len(parts) != 2:
        return None
    try:
        return Coordinate(longitude=float(parts[0]), latitude=float(parts[1]))
    except ValueError:
        return None


@router.get("/token", response_model=TokenResponse)
def token() -> TokenResponse:
    # TODO: hand out a scoped, short-lived token minted via the Mapbox tokens API instead.
    if not settings.mapbox_token:
        raise ProviderNotConfigured("Mapbox token is not configured.")
    return TokenResponse(token=settings.mapbox_token)


@router.get("/geocode")
async def geocode(query: Optional[str] = Query(default=None)) -> Response:
    if not query or not query.strip():
        return _bad_request("Paramètre 'query' manquant.")
    client = MapboxClient()
    return _passthrough(await client.geocode_raw(query.strip()))


@router.get("/reverse-geocode")
async def reverse_geocode(
    lon: Optional[float] = Query(default=None),
    lat: Optional[float] = Query(default=None),
) -> Response:
    if lon is None or lat is None:
        return _bad_request("Paramètres 'lon' et 'lat' requis.")
    try:
        coordinate = Coordinate(longitude=lon, latitude=lat)
    except ValueError as exc:
        return _bad_request(str(exc))
    client = MapboxClient()
    return _passthrough(await client.reverse_geocode_raw(coordinate.longitude, coordinate.latitude))


@router.get("/directions")
async def directions(
    start: Optional[str] = Query(default=None),
    end: Optional[str] = Query(default=None),
) -> Response:
    if not start or not end:
        return _bad_request("Paramètres 'start' et 'end' requis (format lon,lat).")
    origin, destination = _parse_lonlat(start), _parse_lonlat(end)
    if origin is None or destination is None:
        return _bad_request("Coordonnées invalides (format lon,lat).")
    client = MapboxClient()
    return _passthrough(await client.directions_raw(origin.as_lonlat(), destination.as_lonlat()))

"""Client-side adapter to the booking backend: mapping proxy and reservation submission."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ..config import settings
from ..errors import AddressResolutionError, BookingValidationError, RouteComputationError, TransportError
from ..models.domain import BookingRequest, Coordinate, FieldError, RouteEstimate
from ..services.mapping.mapbox_client import parse_first_coordinate, parse_first_place_name, parse_first_route
from ..services.pricing.calculator import format_distance, format_duration, format_price

logger = logging.getLogger(__name__)


def booking_payload(request: BookingRequest) -> dict[str, Any]:
    """Wire payload for ``POST /api/reservations`` built from a frozen booking snapshot."""
    quote = request.quote
    return {
        "pickup": quote.pickup_address,
        "destination": quote.destination_address,
        "distance": format_distance(quote.distance_km),
        "duration": format_duration(quote.duration_minutes),
        "price": format_price(quote.price),
        "serviceType": quote.service_tier,
        "date": request.date,
        "time": request.time,
        "name": request.customer_name,
        "phone": request.customer_phone,
        "email": request.customer_email,
        "passengers": str(request.passenger_count),
        "notes": request.notes,
    }


class BackendClient:
    """Talks to the ridefare server; implements the geocoding and routing provider protocols."""

    def __init__(self, base_url: str, timeout: float | None = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout if timeout is not None else settings.provider_timeout_seconds

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.base_url, timeout=httpx.Timeout(self.timeout))

    async def _get_json(self, path: str, params: dict[str, Any]) -> dict[str, Any]:
        async with self._client() as client:
            response = await client.get(path, params=params)
            response.raise_for_status()
            return response.json()

    async def geocode(self, address: str) -> Coordinate | None:
        try:
            data = await self._get_json("/api/mapbox/geocode", {"query": address})
            return parse_first_coordinate(data)
        except (httpx.HTTPError, ValueError) as exc:
            raise AddressResolutionError(address, f"Geocoding failed for '{address}': {exc}") from exc

    async def reverse_geocode(self, coordinate: Coordinate) -> str | None:
        try:
            data = await self._get_json(
                "/api/mapbox/reverse-geocode",
                {"lon": coordinate.longitude, "lat": coordinate.latitude},
            )
            return parse_first_place_name(data)
        except (httpx.HTTPError, ValueError) as exc:
            raise AddressResolutionError(coordinate.as_lonlat(), f"Reverse geocoding failed: {exc}") from exc

    async def directions(self, start: Coordinate, end: Coordinate) -> RouteEstimate | None:
        try:
            data = await self._get_json(
                "/api/mapbox/directions",
                {"start": start.as_lonlat(), "end": end.as_lonlat()},
            )
            return parse_first_route(data)
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as exc:
            raise RouteComputationError(f"Directions request failed: {exc}") from exc

    async def submit_reservation(self, request: BookingRequest) -> str:
        """Send the booking and return the reservation id.

        Raises :class:`BookingValidationError` on field errors and :class:`TransportError`
        for anything that leaves the booking's server-side fate unknown.
        """
        try:
            async with self._client() as client:
                response = await client.post("/api/reservations", json=booking_payload(request))
        except httpx.HTTPError as exc:
            raise TransportError(f"Could not reach the booking backend: {exc!r}") from exc

        try:
            data = response.json()
        except ValueError as exc:
            raise TransportError(f"Backend answered {response.status_code} with a non-JSON body.") from exc

        if not isinstance(data, dict):
            raise TransportError(f"Backend answered {response.status_code} with an unexpected body.")
        if response.status_code == 400 and isinstance(data.get("errors"), list) and data["errors"]:
            errors = [
                FieldError(str(item.get("field", "")), str(item.get("message", "")))
                for item in data["errors"]
                if isinstance(item, dict)
            ]
            raise BookingValidationError(errors, data.get("message"))
        if response.status_code != 200 or not data.get("success"):
            raise TransportError(
                f"Backend refused the booking ({response.status_code}): {data.get('message', 'no message')}"
            )
        reservation_id = data.get("reservationId")
        if reservation_id is None:
            raise TransportError("Backend accepted the booking without returning a reservation id.")
        return str(reservation_id)

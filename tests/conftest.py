import asyncio
from datetime import date

import pytest

from ridefare.errors import DeliveryError
from ridefare.models.domain import Coordinate, RouteEstimate
from ridefare.services.pricing.rates import RateTable

PARIS = Coordinate(longitude=2.3522, latitude=48.8566)
LYON = Coordinate(longitude=4.8357, latitude=45.7640)
ORLY = Coordinate(longitude=2.3795, latitude=48.7262)


@pytest.fixture
def rate_table() -> RateTable:
    return RateTable.from_config(
        {
            "standard": {"per_km": 1.5, "label": "Standard"},
            "premium": {"per_km": 2.0, "label": "Premium"},
            "business": {"per_km": 2.5, "label": "Business"},
        },
        base_fare=5.0,
    )


@pytest.fixture
def valid_payload() -> dict:
    return {
        "pickup": "10 rue de Rivoli, Paris",
        "destination": "Aéroport d'Orly",
        "distance": "18.4 km",
        "duration": "27 min",
        "price": "32.60 €",
        "serviceType": "standard",
        "date": date.today().isoformat(),
        "time": "14:30",
        "name": "Jean Dupont",
        "phone": "06 12 34 56 78",
        "email": "jean.dupont@example.com",
        "passengers": "2",
        "notes": "Deux valises",
    }


class FakeGeocoder:
    def __init__(self, places: dict, gates: dict | None = None, failing: set | None = None):
        self.places = places
        self.gates = gates or {}
        self.failing = failing or set()
        self.calls: list[str] = []
        self.cancelled: list[str] = []

    async def geocode(self, address: str):
        self.calls.append(address)
        if address in self.gates:
            try:
                await self.gates[address].wait()
            except asyncio.CancelledError:
                self.cancelled.append(address)
                raise
        if address in self.failing:
            from ridefare.errors import AddressResolutionError

            raise AddressResolutionError(address)
        return self.places.get(address)

    async def reverse_geocode(self, coordinate: Coordinate):
        for address, place in self.places.items():
            if place == coordinate:
                return address
        return None


class FakeRouter:
    def __init__(self, route: RouteEstimate | None = None, error: Exception | None = None):
        self.route = route
        self.error = error
        self.calls: list[tuple[Coordinate, Coordinate]] = []

    async def directions(self, start: Coordinate, end: Coordinate):
        self.calls.append((start, end))
        if self.error is not None:
            raise self.error
        return self.route


class RecordingMailer:
    def __init__(self, fail_channels: set | None = None):
        self.fail_channels = fail_channels or set()
        self.sent: list[tuple[str, object]] = []

    async def send(self, message, channel: str = "email") -> None:
        await asyncio.sleep(0)
        if channel in self.fail_channels:
            raise DeliveryError(channel, "simulated outage")
        self.sent.append((channel, message))

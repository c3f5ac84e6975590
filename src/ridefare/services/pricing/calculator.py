"""Fare calculation and display formatting."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from ...models.domain import FareQuote, RouteEstimate
from .rates import RateTable

DURATION_UNAVAILABLE = "estimation indisponible"


def round_half_away(value: float, places: int = 2) -> float:
    """Round like a till does: ties go away from zero (2.675 -> 2.68, -0.125 -> -0.13)."""

    # str() gives the shortest repr, so 2.675 is not seen as 2.67499999...
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def price(distance_km: float, tier: str, rate_table: RateTable) -> float:
    """Return ``base_fare + distance_km * per_km(tier)``."""

    if distance_km < 0:
        raise ValueError("Distance must be non-negative")
    service_tier = rate_table.get(tier)
    return rate_table.base_fare + distance_km * service_tier.per_km


def duration_minutes(duration_seconds: Optional[float]) -> Optional[int]:
    if duration_seconds is None:
        return None
    return int(round_half_away(duration_seconds / 60.0, 0))


def build_quote(
    pickup: str,
    destination: str,
    route: RouteEstimate,
    tier: str,
    rate_table: RateTable,
) -> FareQuote:
    distance_km = route.distance_km
    return FareQuote(
        pickup_address=pickup,
        destination_address=destination,
        distance_km=distance_km,
        duration_minutes=duration_minutes(route.duration_seconds),
        service_tier=tier,
        price=price(distance_km, tier, rate_table),
    )


def format_price(amount: float) -> str:
    return f"{round_half_away(amount):.2f} €"


def format_distance(distance_km: float) -> str:
    return f"{round_half_away(distance_km, 1):.1f} km"


def format_duration(minutes: Optional[int]) -> str:
    if minutes is None:
        return DURATION_UNAVAILABLE
    return f"{minutes} min"

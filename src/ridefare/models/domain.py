"""Domain models shared by the pricing and booking pipelines."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple


@dataclass(frozen=True, slots=True)
class Coordinate:
    longitude: float
    latitude: float

    def __post_init__(self) -> None:
        if not -180.0 <= self.longitude <= 180.0:
            raise ValueError(f"Longitude {self.longitude} is outside [-180, 180].")
        if not -90.0 <= self.latitude <= 90.0:
            raise ValueError(f"Latitude {self.latitude} is outside [-90, 90].")

    def as_lonlat(self) -> str:
        """Render as the ``lon,lat`` pair used in provider URLs."""
        return f"{self.longitude},{self.latitude}"


@dataclass(frozen=True, slots=True)
class ServiceTier:
    code: str
    per_km: float
    label: str

    @property
    def display_name(self) -> str:
        return f"{self.label} ({self.per_km:.2f}€/km)"


@dataclass(frozen=True, slots=True)
class RouteEstimate:
    """Distance and duration between two points.

    ``duration_seconds`` is ``None`` when the estimate comes from the great-circle
    fallback; callers must present it as unknown rather than zero.
    """

    distance_meters: float
    duration_seconds: Optional[float]
    path: Tuple[Coordinate, ...] = ()
    is_fallback: bool = False

    @property
    def distance_km(self) -> float:
        return self.distance_meters / 1000.0


@dataclass(frozen=True, slots=True)
class FareQuote:
    pickup_address: str
    destination_address: str
    distance_km: float
    duration_minutes: Optional[int]
    service_tier: str
    price: float


@dataclass(frozen=True, slots=True)
class BookingRequest:
    """Immutable snapshot of a quote plus the customer's booking form."""

    quote: FareQuote
    date: str
    time: str
    customer_name: str
    customer_phone: str
    passenger_count: int | str
    customer_email: str = ""
    notes: str = ""


@dataclass(frozen=True, slots=True)
class FieldError:
    field: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"field": self.field, "message": self.message}


@dataclass(frozen=True, slots=True)
class ValidatedBooking:
    """Sanitized booking produced only when every validation rule passed."""

    name: str
    phone: str
    pickup: str
    destination: str
    date: str
    time: str
    service_type: str
    passengers: str
    email: str = ""
    notes: str = ""
    distance: str = ""
    duration: str = ""
    price: str = ""


@dataclass(slots=True)
class ValidationResult:
    booking: Optional[ValidatedBooking] = None
    errors: list[FieldError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.booking is not None and not self.errors

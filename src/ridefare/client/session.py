"""Booking session: quote a trip, then submit it.

States flow ``IDLE -> QUOTING -> QUOTE_READY -> SUBMITTING -> CONFIRMED | FAILED``
and back to ``IDLE`` through :meth:`BookingSession.reset`. A new quote request
supersedes one still in flight; only the latest result ever reaches ``QUOTE_READY``.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Optional, Protocol

from ..config import settings
from ..errors import (
    AddressResolutionError,
    BookingValidationError,
    InvalidTransition,
    LocationNotFound,
    RouteComputationError,
    TransportError,
)
from ..models.domain import BookingRequest, Coordinate, FareQuote, FieldError, RouteEstimate
from ..services.geospatial import route_bounds
from ..services.pricing.calculator import build_quote, format_distance, format_duration, format_price
from ..services.pricing.rates import RateTable, get_rate_table
from ..services.routing.estimator import DistanceEstimator

logger = logging.getLogger(__name__)

WEEKDAYS = ("lundi", "mardi", "mercredi", "jeudi", "vendredi", "samedi", "dimanche")
MONTHS = (
    "janvier", "février", "mars", "avril", "mai", "juin",
    "juillet", "août", "septembre", "octobre", "novembre", "décembre",
)


def format_date(value: str) -> str:
    """Long French date (``samedi 14 mars 2026``); anything not ISO is shown as typed."""
    try:
        day = date.fromisoformat(value)
    except (TypeError, ValueError):
        return value
    return f"{WEEKDAYS[day.weekday()]} {day.day} {MONTHS[day.month - 1]} {day.year}"


class SessionState(str, Enum):
    IDLE = "idle"
    QUOTING = "quoting"
    QUOTE_READY = "quote_ready"
    SUBMITTING = "submitting"
    CONFIRMED = "confirmed"
    FAILED = "failed"


class MapView(Protocol):
    def show_route(
        self,
        quote: FareQuote,
        route: RouteEstimate,
        bounds: tuple[float, float, float, float] | None,
    ) -> None: ...

    def clear(self) -> None: ...


class NullMapView:
    def show_route(self, quote, route, bounds) -> None:
        pass

    def clear(self) -> None:
        pass


class Reservations(Protocol):
    async def submit_reservation(self, request: BookingRequest) -> str: ...


@dataclass(frozen=True, slots=True)
class BookingForm:
    date: str
    time: str
    name: str
    phone: str
    passengers: int | str = 1
    email: str = ""
    notes: str = ""


@dataclass(slots=True)
class SubmissionOutcome:
    state: SessionState
    request: BookingRequest
    summary: list[tuple[str, str]] = field(default_factory=list)
    reservation_id: Optional[str] = None
    warning: Optional[str] = None
    errors: list[FieldError] = field(default_factory=list)


class BookingSession:
    def __init__(
        self,
        estimator: DistanceEstimator,
        reservations: Reservations,
        rate_table: RateTable | None = None,
        map_view: MapView | None = None,
        operator_phone: str | None = None,
    ) -> None:
        self.estimator = estimator
        self.reservations = reservations
        self.rate_table = rate_table or get_rate_table()
        self.map_view = map_view or NullMapView()
        self.operator_phone = operator_phone or settings.operator_phone
        self.state = SessionState.IDLE
        self.quote: Optional[FareQuote] = None
        self.route: Optional[RouteEstimate] = None
        self.error: Optional[str] = None
        self.pickup_hint: Optional[str] = None
        self._pending: Optional[asyncio.Task] = None

    async def use_location(self, coordinate: Coordinate) -> Optional[str]:
        """Turn the device position into a pickup address suggestion."""
        try:
            address = await self.estimator.geocoder.reverse_geocode(coordinate)
        except AddressResolutionError as exc:
            logger.warning(f"Reverse geocoding failed: {exc}")
            self.error = "Impossible d'obtenir votre adresse actuelle."
            return None
        self.pickup_hint = address
        return address

    async def _compute(self, pickup: str, destination: str, tier: str) -> tuple[FareQuote, RouteEstimate]:
        route = await self.estimator.estimate(pickup, destination)
        return build_quote(pickup, destination, route, tier, self.rate_table), route

    async def request_quote(self, pickup: str, destination: str, tier: str) -> Optional[FareQuote]:
        """Quote a trip; returns ``None`` when it fails or is superseded by a newer request."""
        if self.state not in (SessionState.IDLE, SessionState.QUOTING, SessionState.QUOTE_READY):
            raise InvalidTransition(f"Cannot request a quote while {self.state.value}.")
        self.rate_table.get(tier)

        pickup, destination = pickup.strip(), destination.strip()
        if not pickup or not destination:
            self.error = "Veuillez renseigner les adresses de départ et d'arrivée."
            return None

        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        task = asyncio.ensure_future(self._compute(pickup, destination, tier))
        self._pending = task
        self.state = SessionState.QUOTING
        self.error = None

        try:
            quote, route = await task
        except asyncio.CancelledError:
            if self._pending is not task:
                return None
            self._pending = None
            self.state = SessionState.IDLE
            raise
        except (AddressResolutionError, RouteComputationError) as exc:
            if self._pending is not task:
                return None
            logger.warning(f"Quote failed for '{pickup}' -> '{destination}': {exc}")
            self._pending = None
            self.state = SessionState.IDLE
            self.quote = None
            self.route = None
            if isinstance(exc, LocationNotFound):
                self.error = "Impossible de localiser une ou plusieurs adresses."
            else:
                self.error = "Impossible de calculer l'itinéraire. Vérifiez les adresses saisies."
            return None

        if self._pending is not task:
            return None
        self._pending = None
        self.quote, self.route = quote, route
        self.state = SessionState.QUOTE_READY
        self.map_view.show_route(quote, route, route_bounds(route.path))
        return quote

    def summary(self, request: BookingRequest) -> list[tuple[str, str]]:
        quote = request.quote
        lines = [
            ("Service", self.rate_table.get(quote.service_tier).label),
            ("Départ", quote.pickup_address),
            ("Destination", quote.destination_address),
            ("Date", format_date(request.date)),
            ("Heure", request.time),
            ("Passagers", str(request.passenger_count)),
            ("Distance", format_distance(quote.distance_km)),
            ("Durée estimée", format_duration(quote.duration_minutes)),
            ("Prix total", format_price(quote.price)),
            ("Nom", request.customer_name),
            ("Téléphone", request.customer_phone),
        ]
        if request.customer_email:
            lines.append(("Email", request.customer_email))
        if request.notes:
            lines.append(("Notes", request.notes))
        return lines

    async def submit(self, form: BookingForm) -> SubmissionOutcome:
        if self.state is not SessionState.QUOTE_READY or self.quote is None:
            raise InvalidTransition(f"Cannot submit a booking while {self.state.value}.")

        request = BookingRequest(
            quote=self.quote,
            date=form.date,
            time=form.time,
            customer_name=form.name,
            customer_phone=form.phone,
            passenger_count=form.passengers,
            customer_email=form.email,
            notes=form.notes,
        )
        self.state = SessionState.SUBMITTING

        try:
            reservation_id = await self.reservations.submit_reservation(request)
        except BookingValidationError as exc:
            self.state = SessionState.QUOTE_READY
            self.error = str(exc)
            return SubmissionOutcome(state=self.state, request=request, errors=exc.errors)
        except TransportError as exc:
            logger.warning(f"Booking submission failed: {exc}")
            return self._failed(request)
        except Exception:
            logger.exception("Booking submission failed unexpectedly")
            return self._failed(request)

        self.state = SessionState.CONFIRMED
        return SubmissionOutcome(
            state=self.state,
            request=request,
            summary=self.summary(request),
            reservation_id=reservation_id,
        )

    def _failed(self, request: BookingRequest) -> SubmissionOutcome:
        self.state = SessionState.FAILED
        return SubmissionOutcome(
            state=self.state,
            request=request,
            summary=self.summary(request),
            warning=(
                "Votre demande n'a pas pu être transmise. Aucune réservation n'est enregistrée : "
                f"contactez directement le chauffeur au {self.operator_phone} pour la confirmer."
            ),
        )

    def reset(self) -> None:
        """Start a new booking: drop the quote, the route and the map overlay."""
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None
        self.state = SessionState.IDLE
        self.quote = None
        self.route = None
        self.error = None
        self.pickup_hint = None
        self.map_view.clear()

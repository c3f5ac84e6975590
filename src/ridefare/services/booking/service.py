"""Reservation submission: validate, assign a reservation id, notify."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import date
from typing import Any

from ...errors import BookingValidationError
from ...models.domain import ValidatedBooking
from ..notifications.dispatcher import DispatchReport, NotificationDispatcher
from ..pricing.rates import RateTable
from .validator import validate

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class AcceptedReservation:
    reservation_id: str
    booking: ValidatedBooking


def new_reservation_id() -> str:
    """Millisecond timestamp token; it identifies a submission, not a stored record."""
    return str(int(time.time() * 1000))


def accept_reservation(
    raw: Any,
    rate_table: RateTable | None = None,
    today: date | None = None,
) -> AcceptedReservation:
    """Validate a raw payload, raising :class:`BookingValidationError` with every field error."""
    result = validate(raw, rate_table=rate_table, today=today)
    if not result.ok:
        logger.info(f"Reservation rejected with {len(result.errors)} field error(s): "
                    f"{', '.join(error.field for error in result.errors)}")
        raise BookingValidationError(result.errors)
    reservation_id = new_reservation_id()
    logger.info(f"Reservation {reservation_id} accepted for {result.booking.date} {result.booking.time}")
    return AcceptedReservation(reservation_id=reservation_id, booking=result.booking)


async def notify_reservation(
    dispatcher: NotificationDispatcher,
    reservation: AcceptedReservation,
) -> DispatchReport:
    return await dispatcher.dispatch(reservation.booking, reservation.reservation_id)

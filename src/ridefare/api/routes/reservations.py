"""Reservation endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Request, status
from fastapi.responses import JSONResponse

from ...errors import BookingValidationError
from ...schemas.reservations import ErrorResponse, FieldErrorModel, ReservationAccepted, ReservationRejected
from ...services.booking.service import accept_reservation, notify_reservation
from ...services.notifications.dispatcher import NotificationDispatcher

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reservations", tags=["reservations"])


def get_dispatcher() -> NotificationDispatcher:
    return NotificationDispatcher()


@router.post("", status_code=status.HTTP_200_OK)
async def create_reservation(
    request: Request,
    background_tasks: BackgroundTasks,
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> JSONResponse:
    try:
        raw = await request.json()
    except ValueError:
        raw = None

    try:
        reservation = accept_reservation(raw)
    except BookingValidationError as exc:
        body = ReservationRejected(
            message="Données de réservation invalides.",
            errors=[FieldErrorModel(field=error.field, message=error.message) for error in exc.errors],
        )
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=body.model_dump())
    except Exception:
        logger.exception("Unexpected error while accepting a reservation")
        body = ErrorResponse(message="Erreur serveur. Veuillez réessayer.")
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=body.model_dump())

    # Notifications run after the response; their outcome never changes it.
    background_tasks.add_task(notify_reservation, dispatcher, reservation)
    body = ReservationAccepted(reservation_id=reservation.reservation_id)
    return JSONResponse(status_code=status.HTTP_200_OK, content=body.model_dump(by_alias=True))

"""Reservation and mapping response schemas."""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field


class FieldErrorModel(BaseModel):
    field: str
    message: str


class ReservationAccepted(BaseModel):
    success: bool = True
    message: str = "Réservation enregistrée avec succès"
    reservation_id: str = Field(..., serialization_alias="reservationId")


class ReservationRejected(BaseModel):
    success: bool = False
    message: str
    errors: List[FieldErrorModel] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    success: bool = False
    message: str


class TokenResponse(BaseModel):
    token: str

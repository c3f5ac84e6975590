"""Operator and customer email contents for a validated booking."""

from __future__ import annotations

from datetime import datetime
from html import escape

from ...errors import InvalidTier
from ...models.domain import ValidatedBooking
from ..pricing.rates import RateTable
from .sendgrid_client import EmailMessage


def service_name(service_type: str, rate_table: RateTable) -> str:
    try:
        return rate_table.get(service_type).display_name
    except InvalidTier:
        return service_type


def _rows(pairs: list[tuple[str, str]]) -> tuple[str, str]:
    text = "\n".join(f"{label} : {value}" for label, value in pairs)
    html = "".join(
        f"<p><strong>{escape(label)} :</strong> {escape(value)}</p>" for label, value in pairs
    )
    return text, html


def operator_message(
    booking: ValidatedBooking,
    recipient: str,
    rate_table: RateTable,
    received_at: datetime | None = None,
) -> EmailMessage:
    received_at = received_at or datetime.now()
    pairs = [
        ("Nom", booking.name),
        ("Téléphone", booking.phone),
    ]
    if booking.email:
        pairs.append(("Email", booking.email))
    pairs += [
        ("Date", booking.date),
        ("Heure", booking.time),
        ("Départ", booking.pickup),
        ("Destination", booking.destination),
        ("Distance", booking.distance),
        ("Durée estimée", booking.duration),
        ("Type de service", service_name(booking.service_type, rate_table)),
        ("Passagers", booking.passengers),
    ]
    if booking.notes:
        pairs.append(("Notes", booking.notes))
    pairs.append(("Prix estimé", booking.price))

    rows_text, rows_html = _rows(pairs)
    header = f"Réservation reçue le {received_at:%d/%m/%Y %H:%M}"
    action = f"Contactez le client au {booking.phone} pour confirmer la réservation."
    return EmailMessage(
        to=recipient,
        subject=f"NOUVELLE RÉSERVATION - {booking.name} - {booking.date} {booking.time}",
        text=f"NOUVELLE RÉSERVATION VTC\n{header}\n\n{rows_text}\n\n{action}\n",
        html=(
            f"<h1>Nouvelle réservation VTC</h1><p>{escape(header)}</p>"
            f"{rows_html}<p><strong>{escape(action)}</strong></p>"
        ),
    )


def customer_message(booking: ValidatedBooking, operator_phone: str) -> EmailMessage:
    pairs = [
        ("Date", booking.date),
        ("Heure", booking.time),
        ("Départ", booking.pickup),
        ("Destination", booking.destination),
        ("Prix estimé", booking.price),
    ]
    rows_text, rows_html = _rows(pairs)
    greeting = f"Merci {booking.name} ! Votre réservation a bien été enregistrée."
    closing = (
        "Notre chauffeur vous contactera prochainement pour confirmer votre réservation. "
        f"En cas de question, contactez-nous au {operator_phone}."
    )
    return EmailMessage(
        to=booking.email,
        subject=f"Confirmation de votre réservation VTC - {booking.date}",
        text=f"{greeting}\n\nRécapitulatif de votre course\n{rows_text}\n\n{closing}\n",
        html=(
            f"<h1>Réservation confirmée</h1><p>{escape(greeting)}</p>"
            f"<h3>Récapitulatif de votre course</h3>{rows_html}<p>{escape(closing)}</p>"
        ),
    )


def self_test_message(recipient: str) -> EmailMessage:
    return EmailMessage(
        to=recipient,
        subject="Test configuration SendGrid",
        text="Test de configuration du serveur email SendGrid.",
    )

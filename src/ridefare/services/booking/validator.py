"""Server-side validation and sanitization of booking payloads.

Every rule is evaluated independently and all violations are collected. Free-text
fields are sanitized (``<``/``>`` removed, whitespace trimmed) before any rule runs,
so the values that are checked, echoed or forwarded never carry markup brackets.
"""

from __future__ import annotations

import math
import re
from datetime import date as Date
from decimal import InvalidOperation
from numbers import Real
from typing import Any, Callable, Mapping, Optional

from ...models.domain import FieldError, ValidatedBooking, ValidationResult
from ..pricing.calculator import format_distance, format_duration, format_price, round_half_away
from ..pricing.rates import RateTable, get_rate_table

NAME_MIN_LENGTH = 2
ADDRESS_MIN_LENGTH = 5
MIN_PASSENGERS = 1
MAX_PASSENGERS = 8

# 0X, +33X or 0033X (X non-zero) then 8 digits, optionally separated by dots or dashes.
PHONE_PATTERN = re.compile(r"^(?:0|\+33|0033)[1-9](?:[.\-]?\d){8}$")
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
INTEGER_PATTERN = re.compile(r"^[+-]?\d+$")
_BRACKETS = str.maketrans("", "", "<>")


def sanitize(value: Any) -> str:
    """Strip ``<`` and ``>`` and surrounding whitespace; only the brackets go, inner text stays."""
    if value is None or isinstance(value, bool):
        return ""
    if isinstance(value, (str, int, float)):
        try:
            return str(value).translate(_BRACKETS).strip()
        except ValueError:
            # int too long for str()
            return ""
    return ""


def _parse_passengers(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str) and INTEGER_PATTERN.match(value.strip()):
        return int(value.strip())
    return None


def _parse_date(value: str) -> Optional[Date]:
    try:
        return Date.fromisoformat(value)
    except ValueError:
        return None


def _display(value: Any, formatter: Callable[[float], str]) -> Optional[str]:
    """Format a numeric trip figure; ``None`` when the number cannot be shown."""
    if isinstance(value, Real) and not isinstance(value, bool):
        try:
            number = float(value)
            if not math.isfinite(number):
                return None
            return formatter(number)
        except (OverflowError, InvalidOperation):
            return None
    return sanitize(value)


def _format_minutes(value: float) -> str:
    return format_duration(int(round_half_away(value, 0)))


DISPLAY_FORMATTERS: tuple[tuple[str, Callable[[float], str]], ...] = (
    ("distance", format_distance),
    ("duration", _format_minutes),
    ("price", format_price),
)


def validate(
    raw: Any,
    rate_table: RateTable | None = None,
    today: Date | None = None,
) -> ValidationResult:
    """Validate a raw booking payload; never raises for malformed input."""

    if not isinstance(raw, Mapping):
        return ValidationResult(errors=[FieldError("payload", "Les données de réservation sont invalides.")])

    rate_table = rate_table or get_rate_table()
    today = today or Date.today()
    errors: list[FieldError] = []

    name = sanitize(raw.get("name"))
    phone = re.sub(r"\s+", "", sanitize(raw.get("phone")))
    pickup = sanitize(raw.get("pickup"))
    destination = sanitize(raw.get("destination"))
    date_text = sanitize(raw.get("date"))
    time_text = sanitize(raw.get("time"))
    email = sanitize(raw.get("email"))
    service_type = sanitize(raw.get("serviceType"))
    notes = sanitize(raw.get("notes"))

    if len(name) < NAME_MIN_LENGTH:
        errors.append(FieldError("name", f"Le nom doit contenir au moins {NAME_MIN_LENGTH} caractères."))

    if not phone:
        errors.append(FieldError("phone", "Le numéro de téléphone est obligatoire."))
    elif not PHONE_PATTERN.match(phone):
        errors.append(FieldError("phone", "Le numéro de téléphone n'est pas un numéro français valide."))

    if len(pickup) < ADDRESS_MIN_LENGTH:
        errors.append(
            FieldError("pickup", f"L'adresse de départ doit contenir au moins {ADDRESS_MIN_LENGTH} caractères.")
        )
    if len(destination) < ADDRESS_MIN_LENGTH:
        errors.append(
            FieldError(
                "destination",
                f"L'adresse de destination doit contenir au moins {ADDRESS_MIN_LENGTH} caractères.",
            )
        )

    if not date_text:
        errors.append(FieldError("date", "La date est obligatoire."))
    else:
        parsed_date = _parse_date(date_text)
        if parsed_date is None:
            errors.append(FieldError("date", "La date est invalide (format attendu AAAA-MM-JJ)."))
        elif parsed_date < today:
            errors.append(FieldError("date", "La date ne peut pas être dans le passé."))

    if not time_text:
        errors.append(FieldError("time", "L'heure est obligatoire."))

    if email and not EMAIL_PATTERN.match(email):
        errors.append(FieldError("email", "L'adresse email est invalide."))

    if service_type not in rate_table:
        allowed = ", ".join(rate_table.codes)
        errors.append(FieldError("serviceType", f"Type de service inconnu (valeurs possibles : {allowed})."))

    passengers = _parse_passengers(raw.get("passengers"))
    if passengers is None or not MIN_PASSENGERS <= passengers <= MAX_PASSENGERS:
        errors.append(
            FieldError(
                "passengers",
                f"Le nombre de passagers doit être un entier entre {MIN_PASSENGERS} et {MAX_PASSENGERS}.",
            )
        )

    figures: dict[str, Optional[str]] = {}
    for field_name, formatter in DISPLAY_FORMATTERS:
        figures[field_name] = _display(raw.get(field_name), formatter)
        if figures[field_name] is None:
            errors.append(FieldError(field_name, "Valeur numérique invalide."))

    if errors:
        return ValidationResult(errors=errors)

    return ValidationResult(
        booking=ValidatedBooking(
            name=name,
            phone=phone,
            pickup=pickup,
            destination=destination,
            date=date_text,
            time=time_text,
            service_type=service_type,
            passengers=str(passengers),
            email=email,
            notes=notes,
            distance=figures["distance"],
            duration=figures["duration"],
            price=figures["price"],
        )
    )

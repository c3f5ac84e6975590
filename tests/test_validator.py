from datetime import date, timedelta

import pytest

from ridefare.services.booking.validator import sanitize, validate

TODAY = date(2026, 3, 14)


def _fields(result) -> set[str]:
    return {error.field for error in result.errors}


@pytest.fixture
def payload(valid_payload: dict) -> dict:
    return {**valid_payload, "date": TODAY.isoformat()}


def test_valid_payload_produces_sanitized_booking(payload, rate_table):
    result = validate(payload, rate_table=rate_table, today=TODAY)

    assert result.ok
    booking = result.booking
    assert booking.name == "Jean Dupont"
    assert booking.phone == "0612345678"
    assert booking.passengers == "2"
    assert booking.service_type == "standard"
    assert booking.price == "32.60 €"


@pytest.mark.parametrize("passengers,valid", [("0", False), ("1", True), ("8", True), ("9", False),
                                              (8, True), ("deux", False), ("2.5", False), (None, False)])
def test_passenger_bounds(payload, rate_table, passengers, valid):
    result = validate({**payload, "passengers": passengers}, rate_table=rate_table, today=TODAY)
    assert ("passengers" not in _fields(result)) is valid


def test_passengers_become_formatted_integer(payload, rate_table):
    result = validate({**payload, "passengers": " 08 "}, rate_table=rate_table, today=TODAY)
    assert result.booking.passengers == "8"


@pytest.mark.parametrize(
    "phone,valid",
    [
        ("0612345678", True),
        ("06 12 34 56 78", True),
        ("+33612345678", True),
        ("0033 1 23 45 67 89", True),
        ("06.12.34.56.78", True),
        ("123", False),
        ("0012345678", False),
        ("061234567", False),
        ("", False),
    ],
)
def test_french_phone_numbers(payload, rate_table, phone, valid):
    result = validate({**payload, "phone": phone}, rate_table=rate_table, today=TODAY)
    assert ("phone" not in _fields(result)) is valid


def test_date_today_passes_and_yesterday_fails(payload, rate_table):
    assert validate(payload, rate_table=rate_table, today=TODAY).ok

    yesterday = (TODAY - timedelta(days=1)).isoformat()
    result = validate({**payload, "date": yesterday}, rate_table=rate_table, today=TODAY)
    assert _fields(result) == {"date"}


def test_unparseable_date_is_an_error(payload, rate_table):
    result = validate({**payload, "date": "14/03/2026"}, rate_table=rate_table, today=TODAY)
    assert _fields(result) == {"date"}


def test_all_violations_are_collected(rate_table):
    result = validate({"name": "J", "email": "not-an-email", "serviceType": "limousine"},
                      rate_table=rate_table, today=TODAY)

    assert result.booking is None
    assert _fields(result) == {
        "name", "phone", "pickup", "destination", "date", "time", "email", "serviceType", "passengers",
    }


def test_email_is_optional(payload, rate_table):
    result = validate({**payload, "email": ""}, rate_table=rate_table, today=TODAY)
    assert result.ok
    assert result.booking.email == ""


def test_addresses_need_five_characters(payload, rate_table):
    result = validate({**payload, "pickup": " Nice ", "destination": "Lyon Part-Dieu"},
                      rate_table=rate_table, today=TODAY)
    assert _fields(result) == {"pickup"}


def test_angle_brackets_are_stripped_not_tags():
    assert sanitize("<b>Jean</b>") == "bJean/b"
    assert sanitize("  <script>alert(1)</script> ") == "scriptalert(1)/script"
    assert sanitize(None) == ""
    assert sanitize(["list"]) == ""


def test_sanitization_applies_to_every_text_field(payload, rate_table):
    result = validate(
        {**payload, "name": "<b>Jean</b>", "notes": "<i>fragile</i>", "pickup": "<10 rue de Rivoli>"},
        rate_table=rate_table,
        today=TODAY,
    )
    assert result.booking.name == "bJean/b"
    assert result.booking.notes == "ifragile/i"
    assert result.booking.pickup == "10 rue de Rivoli"


def test_numeric_trip_figures_are_formatted(payload, rate_table):
    result = validate({**payload, "distance": 18.44, "duration": 26.6, "price": 32.605},
                      rate_table=rate_table, today=TODAY)
    assert result.booking.distance == "18.4 km"
    assert result.booking.duration == "27 min"
    assert result.booking.price == "32.61 €"


@pytest.mark.parametrize("raw", [None, [], "name=Jean", 42])
def test_non_mapping_payload_is_rejected_without_raising(raw, rate_table):
    result = validate(raw, rate_table=rate_table, today=TODAY)
    assert not result.ok
    assert _fields(result) == {"payload"}


@pytest.mark.parametrize("field", ["distance", "duration", "price"])
@pytest.mark.parametrize("value", [10**400, float("inf"), float("-inf"), float("nan"), 1e308])
def test_unrepresentable_trip_figure_is_a_field_error(payload, rate_table, field, value):
    result = validate({**payload, field: value}, rate_table=rate_table, today=TODAY)

    assert not result.ok
    assert _fields(result) == {field}

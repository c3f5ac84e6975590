import pytest

from ridefare.errors import InvalidTier
from ridefare.models.domain import RouteEstimate
from ridefare.services.pricing.calculator import (
    DURATION_UNAVAILABLE,
    build_quote,
    duration_minutes,
    format_duration,
    format_price,
    price,
    round_half_away,
)
from ridefare.services.pricing.rates import RateTable


@pytest.mark.parametrize("distance_km", [0.0, 0.5, 12.3, 470.0])
@pytest.mark.parametrize("tier,rate", [("standard", 1.5), ("premium", 2.0), ("business", 2.5)])
def test_price_is_base_fare_plus_distance_times_rate(rate_table: RateTable, distance_km, tier, rate):
    assert price(distance_km, tier, rate_table) == pytest.approx(5.0 + distance_km * rate)


def test_price_is_monotonic_and_never_below_base_fare(rate_table: RateTable):
    prices = [price(km / 10, "premium", rate_table) for km in range(0, 500)]
    assert prices == sorted(prices)
    assert min(prices) == rate_table.base_fare


def test_unknown_tier_raises(rate_table: RateTable):
    with pytest.raises(InvalidTier):
        price(10.0, "limousine", rate_table)


def test_negative_distance_is_rejected(rate_table: RateTable):
    with pytest.raises(ValueError):
        price(-1.0, "standard", rate_table)


def test_rounding_goes_half_away_from_zero():
    assert round_half_away(2.675) == 2.68
    assert round_half_away(0.125) == 0.13
    assert round_half_away(-0.125) == -0.13
    assert round_half_away(2.5, 0) == 3.0
    assert format_price(32.605) == "32.61 €"


def test_duration_rounds_to_minutes_and_marks_unknown():
    assert duration_minutes(1620.0) == 27
    assert duration_minutes(90.0) == 2
    assert duration_minutes(None) is None
    assert format_duration(None) == DURATION_UNAVAILABLE
    assert format_duration(0) == "0 min"


def test_build_quote_from_fallback_route_has_no_duration(rate_table: RateTable):
    route = RouteEstimate(distance_meters=10_000.0, duration_seconds=None, is_fallback=True)
    quote = build_quote("Gare de Lyon, Paris", "Orly", route, "business", rate_table)

    assert quote.distance_km == pytest.approx(10.0)
    assert quote.duration_minutes is None
    assert quote.price == pytest.approx(30.0)


def test_rate_table_rejects_empty_or_negative_entries():
    with pytest.raises(ValueError):
        RateTable({}, base_fare=5.0)
    with pytest.raises(ValueError):
        RateTable.from_config({"standard": {"per_km": -1}}, base_fare=5.0)


def test_rate_table_labels_default_to_capitalized_code():
    table = RateTable.from_config({"van": {"per_km": 2.0}}, base_fare=0.0)
    assert table.get("van").label == "Van"
    assert table.get("van").display_name == "Van (2.00€/km)"
    assert "van" in table and "standard" not in table

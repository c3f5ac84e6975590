"""Rate table: service tiers and the base fare."""

from __future__ import annotations

from functools import lru_cache
from types import MappingProxyType
from typing import Any, Iterator, Mapping

from ...config import settings
from ...errors import InvalidTier
from ...models.domain import ServiceTier


class RateTable:
    """Read-only mapping of tier code -> :class:`ServiceTier` plus a fixed base fare."""

    def __init__(self, tiers: Mapping[str, ServiceTier], base_fare: float) -> None:
        if not tiers:
            raise ValueError("Rate table must define at least one service tier.")
        if base_fare < 0:
            raise ValueError("Base fare must be non-negative.")
        for tier in tiers.values():
            if tier.per_km < 0:
                raise ValueError(f"Rate for tier '{tier.code}' must be non-negative.")
        self._tiers = MappingProxyType(dict(tiers))
        self.base_fare = float(base_fare)

    @classmethod
    def from_config(cls, rates: Mapping[str, Mapping[str, Any]], base_fare: float) -> "RateTable":
        tiers = {
            code: ServiceTier(
                code=code,
                per_km=float(entry["per_km"]),
                label=str(entry.get("label") or code.capitalize()),
            )
            for code, entry in rates.items()
        }
        return cls(tiers, base_fare)

    def get(self, code: str) -> ServiceTier:
        try:
            return self._tiers[code]
        except (KeyError, TypeError):
            raise InvalidTier(str(code)) from None

    def __contains__(self, code: object) -> bool:
        return code in self._tiers

    def __iter__(self) -> Iterator[ServiceTier]:
        return iter(self._tiers.values())

    def __len__(self) -> int:
        return len(self._tiers)

    @property
    def codes(self) -> tuple[str, ...]:
        return tuple(self._tiers)


@lru_cache(maxsize=1)
def get_rate_table() -> RateTable:
    """Process-wide rate table built once from settings."""
    return RateTable.from_config(settings.rates, settings.base_fare)

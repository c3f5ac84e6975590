"""Distance estimation: geocode both ends, route them, fall back to great-circle distance."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Protocol, TypeVar, Union

from ...config import settings
from ...errors import LocationNotFound, RouteComputationError, RouteUnavailable
from ...models.domain import Coordinate, RouteEstimate
from ..geospatial import fallback_distance_km

logger = logging.getLogger(__name__)

Location = Union[str, Coordinate]
T = TypeVar("T")


class GeocodingProvider(Protocol):
    async def geocode(self, address: str) -> Coordinate | None: ...

    async def reverse_geocode(self, coordinate: Coordinate) -> str | None: ...


class RoutingProvider(Protocol):
    async def directions(self, start: Coordinate, end: Coordinate) -> RouteEstimate | None: ...


async def join_all(*awaitables: Awaitable[T]) -> list[T]:
    """Run awaitables concurrently; the first failure cancels the rest and propagates."""
    tasks = [asyncio.ensure_future(awaitable) for awaitable in awaitables]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


class DistanceEstimator:
    def __init__(
        self,
        geocoder: GeocodingProvider,
        router: RoutingProvider,
        detour_factor: float | None = None,
        allow_fallback: bool = True,
    ) -> None:
        self.geocoder = geocoder
        self.router = router
        self.detour_factor = detour_factor if detour_factor is not None else settings.road_detour_factor
        self.allow_fallback = allow_fallback

    async def resolve(self, location: Location) -> Coordinate:
        if isinstance(location, Coordinate):
            return location
        address = location.strip()
        if not address:
            raise LocationNotFound(location, "Address is empty.")
        coordinate = await self.geocoder.geocode(address)
        if coordinate is None:
            raise LocationNotFound(address)
        return coordinate

    async def estimate(self, origin: Location, destination: Location) -> RouteEstimate:
        start, end = await join_all(self.resolve(origin), self.resolve(destination))

        if start == end:
            return RouteEstimate(distance_meters=0.0, duration_seconds=0.0, path=(start,))

        try:
            route = await self.router.directions(start, end)
        except RouteComputationError as exc:
            logger.warning(f"Routing provider failed for {start.as_lonlat()} -> {end.as_lonlat()}: {exc}")
            route = None
        else:
            if route is None:
                logger.warning(f"Routing provider returned no route for {start.as_lonlat()} -> {end.as_lonlat()}")

        if route is not None:
            return route
        if not self.allow_fallback:
            raise RouteUnavailable(f"No route between {start.as_lonlat()} and {end.as_lonlat()}.")
        return self.fallback(start, end)

    def fallback(self, start: Coordinate, end: Coordinate) -> RouteEstimate:
        distance_km = fallback_distance_km(start, end, self.detour_factor)
        logger.info(f"Using great-circle fallback: {distance_km:.1f} km (x{self.detour_factor})")
        return RouteEstimate(
            distance_meters=distance_km * 1000.0,
            duration_seconds=None,
            path=(start, end),
            is_fallback=True,
        )

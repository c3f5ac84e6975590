"""Route group exports."""

from . import health, mapbox, reservations

__all__ = ["health", "mapbox", "reservations"]

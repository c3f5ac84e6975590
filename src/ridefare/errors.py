"""Error taxonomy shared by the server and the booking client."""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from .models.domain import FieldError


class RideFareError(Exception):
    """Base class for every error raised by ridefare."""


class AddressResolutionError(RideFareError):
    """The geocoding provider failed to resolve an address."""

    def __init__(self, address: str, message: str | None = None) -> None:
        self.address = address
        super().__init__(message or f"Could not resolve address '{address}'.")


class LocationNotFound(AddressResolutionError):
    """The geocoding provider answered but returned no result for the address."""


class RouteComputationError(RideFareError):
    """The routing provider failed (unreachable, timed out, malformed answer)."""


class RouteUnavailable(RouteComputationError):
    """No route could be produced, not even a fallback estimate."""


class InvalidTier(RideFareError, ValueError):
    """The requested service tier is not part of the rate table."""

    def __init__(self, tier: str) -> None:
        self.tier = tier
        super().__init__(f"Unknown service tier '{tier}'.")


class ProviderNotConfigured(RideFareError):
    """A required provider credential is missing from the settings."""


class DeliveryError(RideFareError):
    """A notification could not be delivered."""

    def __init__(self, channel: str, message: str) -> None:
        self.channel = channel
        super().__init__(f"[{channel}] {message}")


DeliveryFailed = DeliveryError


class TransportError(RideFareError):
    """The client could not reach the booking backend or got an unusable answer."""


class InvalidTransition(RideFareError):
    """A booking session operation was invoked from a state that does not allow it."""


class BookingValidationError(RideFareError):
    """The backend rejected a booking with field-level errors."""

    def __init__(self, errors: Sequence[FieldError], message: str | None = None) -> None:
        self.errors = list(errors)
        super().__init__(message or "; ".join(error.message for error in self.errors))


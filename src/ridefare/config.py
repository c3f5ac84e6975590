"""Application configuration and settings management."""

from typing import Annotated, Any, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

DEFAULT_RATES: dict[str, dict[str, Any]] = {
    "standard": {"per_km": 1.50, "label": "Standard"},
    "premium": {"per_km": 2.00, "label": "Premium"},
    "business": {"per_km": 2.50, "label": "Business"},
}


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="RIDEFARE_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Ride Fare Booking API"
    api_prefix: str = "/api"
    port: int = Field(default=3000, ge=1, le=65535)
    log_level: str = Field(default="INFO", description="Root logging level.")

    mapbox_token: Optional[str] = Field(
        default=None,
        description="Mapbox access token used for geocoding and directions.",
    )
    mapbox_base_url: str = Field(default="https://api.mapbox.com")
    mapbox_profile: str = Field(default="mapbox/driving", description="Directions profile.")
    mapbox_max_retries: int = Field(default=1, ge=0)
    mapbox_backoff_seconds: float = Field(default=0.5, ge=0.0)

    sendgrid_api_key: Optional[str] = Field(default=None, description="SendGrid API key.")
    sendgrid_base_url: str = Field(default="https://api.sendgrid.com")
    operator_email: Optional[str] = Field(
        default=None,
        description="Address receiving new booking notifications.",
    )
    sender_email: Optional[str] = Field(default=None, description="From address for outgoing emails.")
    operator_phone: str = Field(default="06 12 34 56 78", description="Phone number shown to customers.")
    email_self_test: bool = Field(
        default=False,
        description="Send a configuration test email to the operator at startup.",
    )

    provider_timeout_seconds: float = Field(
        default=8.0,
        gt=0.0,
        description="Timeout applied to every outbound geocode/route/email call.",
    )

    base_fare: float = Field(default=5.0, ge=0.0, description="Fixed charge added to every fare (EUR).")
    rates: Annotated[dict[str, dict[str, Any]], NoDecode] = Field(
        default_factory=lambda: {tier: dict(entry) for tier, entry in DEFAULT_RATES.items()},
        description="Service tier -> {per_km, label}.",
    )
    road_detour_factor: float = Field(
        default=1.2,
        ge=1.0,
        description="Multiplier applied to great-circle distance when routing is unavailable.",
    )

    frontend_allowed_origins: Annotated[tuple[str, ...], NoDecode] = Field(
        default=("*",),
        description="Permitted web origins for browser clients (CORS).",
    )

    @field_validator("frontend_allowed_origins", mode="before")
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return tuple(str(item) for item in parsed)
            except (json.JSONDecodeError, TypeError):
                pass
            if "," in value:
                return tuple(item.strip() for item in value.split(",") if item.strip())
            if value.strip():
                return (value.strip(),)
        return tuple()

    @field_validator("rates", mode="before")
    @classmethod
    def _parse_rates_from_env(cls, value: Any) -> Any:
        """Accept a JSON object or `tier:rate` comma pairs (e.g. ``standard:1.5,premium:2``)."""
        if not isinstance(value, str):
            return value
        try:
            parsed = json.loads(value)
        except (json.JSONDecodeError, TypeError):
            parsed = None
        if isinstance(parsed, dict):
            return {
                str(tier): entry if isinstance(entry, dict) else {"per_km": entry}
                for tier, entry in parsed.items()
            }
        rates: dict[str, dict[str, Any]] = {}
        for pair in value.split(","):
            if not pair.strip():
                continue
            tier, _, rate = pair.partition(":")
            if not rate:
                raise ValueError(f"Rate entry '{pair}' must look like 'tier:rate'.")
            rates[tier.strip()] = {"per_km": float(rate)}
        return rates


settings = Settings()

#!/usr/bin/env python3
"""Helper script to check the RIDEFARE_ environment and create a template .env file."""

from pathlib import Path
import os
import sys

SECRET_KEYS = ("RIDEFARE_MAPBOX_TOKEN", "RIDEFARE_SENDGRID_API_KEY")
REQUIRED_KEYS = (
    "RIDEFARE_MAPBOX_TOKEN",
    "RIDEFARE_SENDGRID_API_KEY",
    "RIDEFARE_OPERATOR_EMAIL",
    "RIDEFARE_SENDER_EMAIL",
)

TEMPLATE = """# Mapbox (geocoding, directions, map tiles)
RIDEFARE_MAPBOX_TOKEN=pk.your-mapbox-token

# SendGrid (booking notifications)
RIDEFARE_SENDGRID_API_KEY=SG.your-sendgrid-key
RIDEFARE_OPERATOR_EMAIL=operator@example.com
RIDEFARE_SENDER_EMAIL=bookings@example.com
RIDEFARE_EMAIL_SELF_TEST=false

# Server
RIDEFARE_PORT=3000
# RIDEFARE_FRONTEND_ALLOWED_ORIGINS=https://example.com,https://www.example.com

# Pricing (JSON object or tier:rate pairs)
# RIDEFARE_BASE_FARE=5.0
# RIDEFARE_RATES=standard:1.5,premium:2.0
"""


def mask(value: str) -> str:
    return value[:6] + "..." + value[-4:] if len(value) > 12 else "***"


def main():
    project_root = Path(__file__).parent
    env_file = project_root / ".env"

    print("=" * 60)
    print("Ride fare environment checker")
    print("=" * 60)
    print()

    if not env_file.exists():
        env_file.write_text(TEMPLATE, encoding="utf-8")
        print(f"❌ .env file NOT found, created a template at: {env_file}")
        print("⚠️  Please edit .env and add your Mapbox and SendGrid credentials!")
        return

    print(f"✅ Found .env file at: {env_file}")
    print()

    sys.path.insert(0, str(project_root / "src"))
    try:
        from ridefare.config import Settings
        config = Settings()
    except Exception as e:
        print(f"❌ Error loading config: {e}")
        return

    values = {
        "RIDEFARE_MAPBOX_TOKEN": config.mapbox_token,
        "RIDEFARE_SENDGRID_API_KEY": config.sendgrid_api_key,
        "RIDEFARE_OPERATOR_EMAIL": config.operator_email,
        "RIDEFARE_SENDER_EMAIL": config.sender_email,
    }
    missing = []
    for key in REQUIRED_KEYS:
        value = values[key]
        if value:
            shown = mask(value) if key in SECRET_KEYS else value
            source = "environment" if os.getenv(key) else ".env"
            print(f"✅ {key} ({source}): {shown}")
        else:
            print(f"❌ {key} is not set")
            missing.append(key)

    print()
    tiers = ", ".join(f"{code}={entry['per_km']}" for code, entry in config.rates.items())
    print(f"Service tiers: {tiers}")
    print(f"Base fare: {config.base_fare}")
    print()
    print("=" * 60)
    print("✅ SUCCESS: all credentials configured" if not missing else f"❌ Missing: {', '.join(missing)}")
    print("=" * 60)


if __name__ == "__main__":
    main()

# ABOUTME: Environment-driven configuration for the weather session.
# ABOUTME: Loads .env once and exposes the provider URL, units, and API credential lookup.

import os

from dotenv import load_dotenv

load_dotenv()

API_KEY_ENV = "OPENWEATHER_API_KEY"

BASE_URL = os.environ.get("OPENWEATHER_BASE_URL", "https://api.openweathermap.org/data/2.5")

# The only unit system requested from the provider
UNITS = "metric"

# Spacing of the provider's forecast series
SAMPLE_INTERVAL_HOURS = 3


def get_api_key() -> str | None:
    """Return the configured API key, or None when it is missing or blank."""
    key = os.environ.get(API_KEY_ENV, "").strip()
    return key or None

# ABOUTME: Shared test fixtures and helpers for the weather session test suite.
# ABOUTME: Builds OpenWeatherMap-shaped payloads and mock httpx clients.

from unittest.mock import AsyncMock

import httpx
import pytest

SUNRISE = 1736924700
SUNSET = 1736953200
SERIES_START = 1736942400


def current_payload(temp: float = 15.3, cod=200, name: str = "Testville") -> dict:
    """A /weather response body as the provider returns it."""
    return {
        "cod": cod,
        "name": name,
        "main": {"temp": temp, "humidity": 64},
        "weather": [{"description": "scattered clouds"}],
        "wind": {"speed": 3.6},
        "sys": {"sunrise": SUNRISE, "sunset": SUNSET},
    }


def forecast_payload(count: int = 40, cod="200") -> dict:
    """A /forecast response body with `count` entries three hours apart."""
    return {
        "cod": cod,
        "cnt": count,
        "list": [
            {
                "dt": SERIES_START + i * 3 * 3600,
                "main": {"temp": 10.0 + i},
                "weather": [{"description": f"sample {i}"}],
            }
            for i in range(count)
        ],
    }


def mock_client(current=None, forecast=None, errors: dict | None = None) -> AsyncMock:
    """Create a mock httpx.AsyncClient answering /weather and /forecast by URL suffix.

    `errors` maps "weather" or "forecast" to an exception raised for that endpoint.
    """
    current = current_payload() if current is None else current
    forecast = forecast_payload() if forecast is None else forecast
    errors = errors or {}
    mock = AsyncMock(spec=httpx.AsyncClient)

    async def fake_get(url, params=None):
        endpoint = url.rsplit("/", 1)[-1]
        if endpoint in errors:
            raise errors[endpoint]
        body = current if endpoint == "weather" else forecast
        request = httpx.Request("GET", url)
        if isinstance(body, str):
            return httpx.Response(200, text=body, request=request)
        return httpx.Response(200, json=body, request=request)

    mock.get.side_effect = fake_get
    return mock


@pytest.fixture
def client() -> AsyncMock:
    return mock_client()

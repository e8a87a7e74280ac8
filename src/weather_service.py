# ABOUTME: Gateway for OpenWeatherMap current-conditions and forecast calls.
# ABOUTME: Fetches both endpoints concurrently, validates their status codes, and parses the bundle.

import asyncio
import logging
from datetime import datetime, timezone

import httpx

from src.config import BASE_URL, UNITS
from src.models import (
    ByCityName,
    CurrentWeather,
    ErrorKind,
    ForecastSample,
    WeatherBundle,
    WeatherQuery,
)

logger = logging.getLogger(__name__)

CURRENT_PATH = "weather"
FORECAST_PATH = "forecast"

# The provider reports success as a number on /weather but as a string on /forecast
CURRENT_SUCCESS_CODE = 200
FORECAST_SUCCESS_CODE = "200"


class GatewayError(Exception):
    """Base class for failures of a bundle fetch."""

    kind: ErrorKind
    default_message: str

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class ConfigError(GatewayError):
    """No API key is configured."""

    kind = ErrorKind.CONFIG
    default_message = "API key is missing or not loaded."


class ProviderError(GatewayError):
    """Either endpoint reported a non-success status or returned unusable data."""

    kind = ErrorKind.PROVIDER
    default_message = "Error fetching weather data."


class NetworkError(GatewayError):
    """Either request failed at the transport level."""

    kind = ErrorKind.NETWORK
    default_message = "Failed to fetch weather data."


class WeatherGateway:
    """Fetches a WeatherBundle for a coordinates or city-name query.

    The client is used as given; no timeout or retry is added here.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_key: str | None,
        base_url: str = BASE_URL,
        units: str = UNITS,
    ):
        self.client = client
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.units = units

    async def fetch_bundle(self, query: WeatherQuery) -> WeatherBundle:
        """Fetch current conditions and the forecast series for one query.

        Raises:
            ConfigError: If no API key is configured. No request is sent.
            NetworkError: If either request fails at the transport level.
            ProviderError: If either status code is not a success or a body is unusable.
        """
        if not self.api_key:
            raise ConfigError()

        params = {**query.params(), "appid": self.api_key, "units": self.units}
        logger.info("Fetching current weather and forecast for %s", _describe(query))

        # Wait for both outcomes before judging either
        current_result, forecast_result = await asyncio.gather(
            self._get_json(CURRENT_PATH, params),
            self._get_json(FORECAST_PATH, params),
            return_exceptions=True,
        )
        current_data = _unwrap(current_result, forecast_result)
        forecast_data = _unwrap(forecast_result, current_result)

        if not isinstance(current_data, dict) or not isinstance(forecast_data, dict):
            logger.error("Provider returned a non-object body")
            raise ProviderError()

        current_code = current_data.get("cod")
        forecast_code = forecast_data.get("cod")
        if current_code != CURRENT_SUCCESS_CODE or forecast_code != FORECAST_SUCCESS_CODE:
            logger.error(
                "Provider rejected request: current cod=%r (%s), forecast cod=%r (%s)",
                current_code,
                current_data.get("message"),
                forecast_code,
                forecast_data.get("message"),
            )
            raise ProviderError()

        try:
            bundle = WeatherBundle(
                current=parse_current_weather(current_data),
                forecast=parse_forecast_series(forecast_data),
            )
        except (KeyError, IndexError, TypeError, ValueError, OverflowError, OSError) as e:
            logger.error("Malformed provider payload: %s", e)
            raise ProviderError() from e

        logger.info("Fetched weather for %s with %d forecast samples", bundle.current.place_name, len(bundle.forecast))
        return bundle

    async def _get_json(self, path: str, params: dict):
        resp = await self.client.get(f"{self.base_url}/{path}", params=params)
        return resp.json()


def _unwrap(result, other):
    """Return a gathered result, mapping exceptions to gateway errors.

    A transport failure on either side wins over a decode failure so both
    requests are judged the same way regardless of which one came first.
    """
    if not isinstance(result, BaseException):
        return result
    if isinstance(result, httpx.RequestError):
        logger.error("Transport error from weather provider: %s", result)
        raise NetworkError() from result
    if isinstance(other, httpx.RequestError):
        logger.error("Transport error from weather provider: %s", other)
        raise NetworkError() from other
    if isinstance(result, ValueError):
        logger.error("Provider returned a body that is not JSON: %s", result)
        raise ProviderError() from result
    raise result


def _describe(query: WeatherQuery) -> str:
    if isinstance(query, ByCityName):
        return f"city={query.city!r}"
    return f"lat={query.coordinates.latitude}, lon={query.coordinates.longitude}"


def _from_unix(value) -> datetime:
    return datetime.fromtimestamp(value, tz=timezone.utc)


def parse_current_weather(raw: dict) -> CurrentWeather:
    """Parse a /weather payload into CurrentWeather."""
    return CurrentWeather(
        place_name=raw["name"],
        temperature=raw["main"]["temp"],
        description=raw["weather"][0]["description"],
        humidity=raw["main"]["humidity"],
        wind_speed=raw["wind"]["speed"],
        sunrise=_from_unix(raw["sys"]["sunrise"]),
        sunset=_from_unix(raw["sys"]["sunset"]),
    )


def parse_forecast_series(raw: dict) -> list[ForecastSample]:
    """Parse the ordered 'list' of a /forecast payload into ForecastSample rows."""
    entries = raw.get("list", [])
    if not entries:
        return []

    result = []
    for entry in entries:
        result.append(
            ForecastSample(
                timestamp=_from_unix(entry["dt"]),
                temperature=entry["main"]["temp"],
                description=entry["weather"][0]["description"],
            )
        )
    return result

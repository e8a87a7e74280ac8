# ABOUTME: Pydantic BaseModels for weather queries, provider data, and session state.
# ABOUTME: Defines structured types for OpenWeatherMap data used throughout the app.

import math
from datetime import datetime
from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (14.5 -> 15, -0.5 -> 0)."""
    return math.floor(value + 0.5)


class Coordinates(BaseModel):
    """Device or looked-up position in decimal degrees."""

    model_config = ConfigDict(frozen=True)

    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class ByCoordinates(BaseModel):
    """Weather query for a latitude/longitude pair."""

    kind: Literal["coordinates"] = "coordinates"
    coordinates: Coordinates

    def params(self) -> dict:
        return {"lat": self.coordinates.latitude, "lon": self.coordinates.longitude}


class ByCityName(BaseModel):
    """Weather query for a free-text city name."""

    kind: Literal["city"] = "city"
    city: str

    def params(self) -> dict:
        return {"q": self.city}


WeatherQuery = Annotated[ByCoordinates | ByCityName, Field(discriminator="kind")]


class CurrentWeather(BaseModel):
    """Current conditions from the provider's /weather endpoint."""

    place_name: str
    temperature: float
    description: str
    humidity: int
    wind_speed: float
    sunrise: datetime
    sunset: datetime

    @property
    def rounded_temperature(self) -> int:
        return round_half_up(self.temperature)


class ForecastSample(BaseModel):
    """One 3-hour step of the provider's /forecast series."""

    timestamp: datetime
    temperature: float
    description: str

    @property
    def rounded_temperature(self) -> int:
        return round_half_up(self.temperature)


class WeatherBundle(BaseModel):
    """Current conditions and forecast series fetched together for one query."""

    current: CurrentWeather
    forecast: list[ForecastSample] = []


class SessionPhase(str, Enum):
    IDLE = "idle"
    LOCATING_DEVICE = "locating_device"
    AWAITING_BUNDLE = "awaiting_bundle"
    READY = "ready"
    ERROR = "error"


class QueryMode(str, Enum):
    COORDINATES = "coordinates"
    CITY_NAME = "city_name"


class ErrorKind(str, Enum):
    PERMISSION_DENIED = "permission_denied"
    POSITION_UNAVAILABLE = "position_unavailable"
    CONFIG = "config"
    PROVIDER = "provider"
    NETWORK = "network"
    VALIDATION = "validation"


class SessionError(BaseModel):
    """User-visible error recorded on the session."""

    kind: ErrorKind
    message: str = Field(..., min_length=1)


class SessionState(BaseModel):
    """Everything the view layer may render, owned by a WeatherSession."""

    phase: SessionPhase = SessionPhase.IDLE
    query_mode: QueryMode | None = None
    coordinates: Coordinates | None = None
    current: CurrentWeather | None = None
    daily: list[ForecastSample] = []
    error: SessionError | None = None
    searching: bool = False

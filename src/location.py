# ABOUTME: Location provider contract plus static and IP-lookup implementations.
# ABOUTME: Supplies device coordinates to the weather session or signals denial/unavailability.

import logging
from enum import Enum
from typing import Any, Protocol

import httpx

from src.models import Coordinates, ErrorKind

logger = logging.getLogger(__name__)

IP_GEOLOCATION_URL = "https://ipapi.co/json/"


class PermissionStatus(str, Enum):
    GRANTED = "granted"
    DENIED = "denied"


class LocationError(Exception):
    """Base class for failures while resolving the device position."""

    kind: ErrorKind
    default_message: str

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class PermissionDenied(LocationError):
    kind = ErrorKind.PERMISSION_DENIED
    default_message = "Permission to access location was denied"


class PositionUnavailable(LocationError):
    kind = ErrorKind.POSITION_UNAVAILABLE
    default_message = "Unable to determine current location."


class LocationProvider(Protocol):
    async def request_permission(self) -> PermissionStatus:
        """Ask for access to the device position."""

    async def get_current_position(self, high_accuracy: bool = True, max_cached_age: int = 0) -> Coordinates:
        """Return the current position or raise PermissionDenied / PositionUnavailable."""


class StaticLocationProvider:
    """Reports a fixed position, e.g. from command-line arguments."""

    def __init__(self, coordinates: Coordinates, granted: bool = True):
        self.coordinates = coordinates
        self.granted = granted

    async def request_permission(self) -> PermissionStatus:
        return PermissionStatus.GRANTED if self.granted else PermissionStatus.DENIED

    async def get_current_position(self, high_accuracy: bool = True, max_cached_age: int = 0) -> Coordinates:
        if not self.granted:
            raise PermissionDenied()
        return self.coordinates


def _coerce_float(value: Any) -> float | None:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


class IpLocationProvider:
    """Approximates the device position from the public IP address.

    Accuracy hints are accepted for compatibility but an IP lookup is always
    city-level, and nothing is cached between calls.
    """

    def __init__(self, client: httpx.AsyncClient, url: str = IP_GEOLOCATION_URL, consent: bool = True):
        self.client = client
        self.url = url
        self.consent = consent

    async def request_permission(self) -> PermissionStatus:
        return PermissionStatus.GRANTED if self.consent else PermissionStatus.DENIED

    async def get_current_position(self, high_accuracy: bool = True, max_cached_age: int = 0) -> Coordinates:
        if not self.consent:
            raise PermissionDenied()

        try:
            resp = await self.client.get(self.url)
            resp.raise_for_status()
            payload = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error("IP geolocation lookup failed: %s", e)
            raise PositionUnavailable() from e

        if not isinstance(payload, dict):
            raise PositionUnavailable()

        lat = _coerce_float(payload.get("latitude"))
        lon = _coerce_float(payload.get("longitude"))
        if lat is None or lon is None:
            logger.error("IP geolocation response has no coordinates: %s", payload.get("reason", payload))
            raise PositionUnavailable()

        try:
            coords = Coordinates(latitude=lat, longitude=lon)
        except ValueError as e:
            raise PositionUnavailable() from e
        logger.info("Resolved position from IP: %s, %s", coords.latitude, coords.longitude)
        return coords

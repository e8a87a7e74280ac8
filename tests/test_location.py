# ABOUTME: Contract tests for the static and IP-lookup location providers.
# ABOUTME: Validates permission answers, coordinate parsing and failure mapping with mocked HTTP.

from unittest.mock import AsyncMock

import httpx
import pytest

from src.location import (
    IpLocationProvider,
    PermissionDenied,
    PermissionStatus,
    PositionUnavailable,
    StaticLocationProvider,
)
from src.models import Coordinates, ErrorKind


def _ip_client(json_data=None, status_code: int = 200, error: Exception | None = None) -> AsyncMock:
    mock = AsyncMock(spec=httpx.AsyncClient)
    if error is not None:
        mock.get.side_effect = error
    else:
        mock.get.return_value = httpx.Response(
            status_code=status_code, json=json_data, request=httpx.Request("GET", "https://ipapi.test/json/")
        )
    return mock


class TestStaticLocationProvider:
    @pytest.mark.asyncio
    async def test_granted_returns_coordinates(self):
        coords = Coordinates(latitude=10.0, longitude=20.0)
        provider = StaticLocationProvider(coords)

        assert await provider.request_permission() is PermissionStatus.GRANTED
        assert await provider.get_current_position() == coords

    @pytest.mark.asyncio
    async def test_denied(self):
        provider = StaticLocationProvider(Coordinates(latitude=0.0, longitude=0.0), granted=False)

        assert await provider.request_permission() is PermissionStatus.DENIED
        with pytest.raises(PermissionDenied) as exc_info:
            await provider.get_current_position()
        assert exc_info.value.message == "Permission to access location was denied"
        assert exc_info.value.kind is ErrorKind.PERMISSION_DENIED


class TestIpLocationProvider:
    @pytest.mark.asyncio
    async def test_resolves_coordinates(self):
        """An IP lookup response is turned into Coordinates.

        Implementation: Mocks the geolocation endpoint with latitude/longitude fields.
        Passing implies: The provider parses the lookup into a usable position.
        """
        client = _ip_client({"latitude": 55.6761, "longitude": "12.5683", "city": "Copenhagen"})
        provider = IpLocationProvider(client, url="https://ipapi.test/json/")

        coords = await provider.get_current_position(high_accuracy=True, max_cached_age=0)

        assert coords == Coordinates(latitude=55.6761, longitude=12.5683)
        client.get.assert_called_once_with("https://ipapi.test/json/")

    @pytest.mark.asyncio
    async def test_without_consent_no_lookup(self):
        client = _ip_client({"latitude": 1.0, "longitude": 2.0})
        provider = IpLocationProvider(client, consent=False)

        assert await provider.request_permission() is PermissionStatus.DENIED
        with pytest.raises(PermissionDenied):
            await provider.get_current_position()
        client.get.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "json_data, status_code",
        [
            ({"error": True, "reason": "RateLimited"}, 429),
            ({"error": True, "reason": "Reserved IP Address"}, 200),
            ({"latitude": None, "longitude": 2.0}, 200),
            ({"latitude": 95.0, "longitude": 2.0}, 200),
            (["unexpected"], 200),
        ],
    )
    async def test_unusable_response_is_position_unavailable(self, json_data, status_code):
        client = _ip_client(json_data, status_code=status_code)

        with pytest.raises(PositionUnavailable) as exc_info:
            await IpLocationProvider(client).get_current_position()

        assert exc_info.value.kind is ErrorKind.POSITION_UNAVAILABLE

    @pytest.mark.asyncio
    async def test_transport_error_is_position_unavailable(self):
        client = _ip_client(error=httpx.ConnectError("offline", request=httpx.Request("GET", "https://ipapi.test")))

        with pytest.raises(PositionUnavailable):
            await IpLocationProvider(client).get_current_position()

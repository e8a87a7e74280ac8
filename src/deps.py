# ABOUTME: Dependency container for the weather session using Pydantic BaseModel.
# ABOUTME: Holds the shared httpx.AsyncClient and API key, and builds the weather gateway.

import httpx
from pydantic import BaseModel, ConfigDict

from src.config import BASE_URL, get_api_key
from src.weather_service import WeatherGateway


class WeatherDeps(BaseModel):
    """Collaborators shared by the gateway and the location provider."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    http_client: httpx.AsyncClient
    api_key: str | None = None
    base_url: str = BASE_URL

    def gateway(self) -> WeatherGateway:
        return WeatherGateway(self.http_client, api_key=self.api_key, base_url=self.base_url)


def create_http_client() -> httpx.AsyncClient:
    """Create the httpx client used for provider and IP lookup calls.

    No retry transport and no timeout: a failed fetch needs a new trigger, and
    a hung request blocks its state transition until the server answers.
    """
    return httpx.AsyncClient(timeout=None)


def create_deps(http_client: httpx.AsyncClient) -> WeatherDeps:
    """Build WeatherDeps with the API key read from the environment."""
    return WeatherDeps(http_client=http_client, api_key=get_api_key())

# ABOUTME: Command-line entry point running one weather session to completion.
# ABOUTME: Wires the HTTP client, gateway and location provider, then prints the resulting state.

import argparse
import asyncio
import logging

from src.deps import create_deps, create_http_client
from src.location import IpLocationProvider, StaticLocationProvider
from src.models import Coordinates, SessionState
from src.session import WeatherSession

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Look up current weather and a daily forecast.")
    parser.add_argument("--city", help="Search this city after the device location step")
    parser.add_argument("--latitude", type=float, help="Use a fixed latitude instead of an IP lookup")
    parser.add_argument("--longitude", type=float, help="Use a fixed longitude instead of an IP lookup")
    parser.add_argument("--deny-location", action="store_true", help="Refuse location permission")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)
    if (args.latitude is None) != (args.longitude is None):
        parser.error("--latitude and --longitude must be given together")
    if args.latitude is not None and not -90 <= args.latitude <= 90:
        parser.error("--latitude must be between -90 and 90")
    if args.longitude is not None and not -180 <= args.longitude <= 180:
        parser.error("--longitude must be between -180 and 180")
    return args


def render_state(state: SessionState) -> str:
    """Render a session snapshot as plain text lines."""
    lines = []
    if state.current is not None:
        current = state.current
        lines.append(current.place_name)
        lines.append(f"{current.rounded_temperature}°C, {current.description}")
        lines.append(f"Humidity: {current.humidity}%")
        lines.append(f"Wind Speed: {current.wind_speed} m/s")
        lines.append(f"Sunrise: {current.sunrise.astimezone():%H:%M}")
        lines.append(f"Sunset: {current.sunset.astimezone():%H:%M}")
    if state.daily:
        lines.append("Forecast:")
        for sample in state.daily:
            lines.append(f"  {sample.timestamp.astimezone():%a, %b %d}  {sample.rounded_temperature}°C  {sample.description}")
    if state.error is not None:
        lines.append(f"Error: {state.error.message}")
    return "\n".join(lines)


async def run(args: argparse.Namespace) -> SessionState:
    async with create_http_client() as client:
        deps = create_deps(client)
        if args.latitude is not None:
            coordinates = Coordinates(latitude=args.latitude, longitude=args.longitude)
            provider = StaticLocationProvider(coordinates, granted=not args.deny_location)
        else:
            provider = IpLocationProvider(client, consent=not args.deny_location)

        async with WeatherSession(deps.gateway(), provider) as session:
            session.start()
            await session.wait_idle()
            if args.city is not None:
                session.search(args.city)
                await session.wait_idle()
            return session.state


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    state = asyncio.run(run(args))
    print(render_state(state))
    return 1 if state.error is not None else 0


if __name__ == "__main__":
    raise SystemExit(main())

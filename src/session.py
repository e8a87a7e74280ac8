# ABOUTME: Weather session state machine sequencing location lookup and weather fetches.
# ABOUTME: A single controller task applies events to the owned SessionState; callers read snapshots.

import asyncio
import logging

from pydantic import BaseModel

from src.forecast import SAMPLES_PER_DAY, derive_daily
from src.location import LocationError, LocationProvider, PermissionDenied, PermissionStatus
from src.models import (
    ByCityName,
    ByCoordinates,
    Coordinates,
    CurrentWeather,
    ErrorKind,
    ForecastSample,
    QueryMode,
    SessionError,
    SessionPhase,
    SessionState,
    WeatherBundle,
)
from src.weather_service import GatewayError, WeatherGateway

logger = logging.getLogger(__name__)

EMPTY_SEARCH_MESSAGE = "Please enter a city name."


class SessionStarted(BaseModel):
    pass


class LocationFailed(BaseModel):
    kind: ErrorKind
    message: str


class PositionResolved(BaseModel):
    coordinates: Coordinates
    # Set when a search was outstanding at the moment the position arrived
    during_search: bool = False


class SearchRequested(BaseModel):
    city: str


class WeatherSession:
    """Coordinates device location, city searches and weather fetches.

    All state changes happen in one controller task that consumes events in
    order. Fetches are awaited inside that task, so at most one is in flight;
    a search requested while a device fetch runs is handled right after it.
    The location step runs in its own task and only posts events.

    Use as an async context manager:

        async with WeatherSession(gateway, provider) as session:
            session.start()
            await session.wait_idle()
            print(session.current_weather)
    """

    def __init__(
        self,
        gateway: WeatherGateway,
        location_provider: LocationProvider,
        stride: int = SAMPLES_PER_DAY,
    ):
        self._gateway = gateway
        self._location_provider = location_provider
        self._stride = stride
        self._state = SessionState()
        self._events: asyncio.Queue = asyncio.Queue()
        self._controller: asyncio.Task | None = None
        self._locator: asyncio.Task | None = None
        self._pending_searches = 0

    async def __aenter__(self):
        self._controller = asyncio.create_task(self._run())
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self) -> None:
        """Stop the controller and any location lookup still running."""
        tasks = [t for t in (self._locator, self._controller) if t is not None and not t.done()]
        for task in tasks:
            task.cancel()
        for task in tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass

    # Read-only surface

    @property
    def state(self) -> SessionState:
        """Snapshot of the session; mutating it does not affect the session."""
        return self._state.model_copy(update={"searching": self.is_searching}, deep=True)

    @property
    def phase(self) -> SessionPhase:
        return self._state.phase

    @property
    def current_weather(self) -> CurrentWeather | None:
        return self.state.current

    @property
    def daily_forecast(self) -> list[ForecastSample]:
        return self.state.daily

    @property
    def error(self) -> SessionError | None:
        return self.state.error

    @property
    def is_searching(self) -> bool:
        return self._pending_searches > 0

    @property
    def is_loading(self) -> bool:
        return self._state.current is None and self._state.error is None

    # Triggers

    def start(self) -> None:
        """Begin the device-location cycle. Only the first call has an effect."""
        self._ensure_running()
        self._events.put_nowait(SessionStarted())

    def search(self, city: str) -> bool:
        """Request weather for a city name.

        Returns False without touching weather data when the name is blank;
        the validation error is visible immediately, even while a fetch runs.
        """
        self._ensure_running()
        if not city or not city.strip():
            self._state.error = SessionError(kind=ErrorKind.VALIDATION, message=EMPTY_SEARCH_MESSAGE)
            return False
        self._pending_searches += 1
        self._events.put_nowait(SearchRequested(city=city.strip()))
        return True

    def _ensure_running(self) -> None:
        if self._controller is None or self._controller.done():
            raise RuntimeError("WeatherSession is not running; use it as an async context manager")

    async def wait_idle(self) -> None:
        """Wait until the location step has finished and every queued event is applied."""
        await self._drain()
        if self._locator is not None:
            await self._locator
            await self._drain()

    async def _drain(self) -> None:
        if self._controller is None:
            raise RuntimeError("WeatherSession is not running; use it as an async context manager")
        joiner = asyncio.ensure_future(self._events.join())
        await asyncio.wait({joiner, self._controller}, return_when=asyncio.FIRST_COMPLETED)
        if self._controller.cancelled():
            joiner.cancel()
            raise RuntimeError("WeatherSession is closed")
        if self._controller.done():
            joiner.cancel()
            # Re-raises whatever stopped the controller
            self._controller.result()
            raise RuntimeError("WeatherSession controller stopped")

    # Controller

    async def _run(self) -> None:
        while True:
            event = await self._events.get()
            try:
                await self._dispatch(event)
            finally:
                self._events.task_done()

    async def _dispatch(self, event: BaseModel) -> None:
        if isinstance(event, SessionStarted):
            self._on_started()
        elif isinstance(event, LocationFailed):
            self._fail(event.kind, event.message)
        elif isinstance(event, PositionResolved):
            await self._on_position_resolved(event)
        elif isinstance(event, SearchRequested):
            await self._on_search_requested(event)
        else:
            raise TypeError(f"Unknown session event: {event!r}")

    def _on_started(self) -> None:
        if self._locator is not None:
            logger.warning("Session already started, ignoring start request")
            return
        self._state.phase = SessionPhase.LOCATING_DEVICE
        self._locator = asyncio.create_task(self._locate_device())

    async def _locate_device(self) -> None:
        try:
            status = await self._location_provider.request_permission()
            if status is not PermissionStatus.GRANTED:
                raise PermissionDenied()
            coordinates = await self._location_provider.get_current_position(high_accuracy=True, max_cached_age=0)
        except LocationError as e:
            logger.warning("Device location failed: %s", e)
            self._events.put_nowait(LocationFailed(kind=e.kind, message=e.message))
            return

        logger.info("Device location: %s, %s", coordinates.latitude, coordinates.longitude)
        self._events.put_nowait(PositionResolved(coordinates=coordinates, during_search=self.is_searching))

    async def _on_position_resolved(self, event: PositionResolved) -> None:
        self._state.coordinates = event.coordinates
        if event.during_search or self.is_searching:
            logger.info("Search in flight, not fetching weather for device position")
            return

        self._state.phase = SessionPhase.AWAITING_BUNDLE
        self._state.query_mode = QueryMode.COORDINATES
        try:
            bundle = await self._gateway.fetch_bundle(ByCoordinates(coordinates=event.coordinates))
        except GatewayError as e:
            # Weather from an earlier device fetch stays visible
            self._fail(e.kind, e.message)
            return
        self._apply_bundle(bundle)

    async def _on_search_requested(self, event: SearchRequested) -> None:
        self._state.query_mode = QueryMode.CITY_NAME
        try:
            bundle = await self._gateway.fetch_bundle(ByCityName(city=event.city))
        except GatewayError as e:
            self._state.current = None
            self._state.daily = []
            self._fail(e.kind, e.message)
        else:
            self._apply_bundle(bundle)
            self._state.error = None
        finally:
            self._pending_searches -= 1

    def _apply_bundle(self, bundle: WeatherBundle) -> None:
        self._state.current = bundle.current
        self._state.daily = derive_daily(bundle.forecast, self._stride)
        self._state.phase = SessionPhase.READY
        logger.info(
            "Weather updated: %s %.1f° %s, %d daily entries",
            bundle.current.place_name,
            bundle.current.temperature,
            bundle.current.description,
            len(self._state.daily),
        )

    def _fail(self, kind: ErrorKind, message: str) -> None:
        logger.error("Session error (%s): %s", kind.value, message)
        self._state.error = SessionError(kind=kind, message=message)
        self._state.phase = SessionPhase.ERROR

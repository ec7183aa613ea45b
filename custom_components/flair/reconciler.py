"""Per-device polling that keeps cached HVAC and room state fresh."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
import logging
import random

from .api import FlairApi, FlairApiError
from .const import POLL_JITTER_MAX, POLL_JITTER_MIN
from .models import HVAC, Room, Structure, TemperatureScale
from .translator import CurrentState, TargetState, current_state, target_state

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class ThermostatUpdate:
    """State pushed to the host whenever a poll or command yields fresh data."""

    device_id: str
    current_temperature_c: float | None
    current_humidity: float | None
    target_state: TargetState
    current_state: CurrentState
    set_point_c: float
    temperature_scale: TemperatureScale


PublishCallback = Callable[[str, ThermostatUpdate], None]


class StateReconciler:
    """Poll one HVAC unit and its room on two independent jittered timers.

    Each timer waits ``base_poll_interval`` plus a random 1-20 seconds, drawn
    again before every tick, so many units polling the same account drift
    apart instead of bursting together. A failed fetch is logged and the
    previous cache is kept; the next tick is the only retry.
    """

    def __init__(
        self,
        client: FlairApi,
        hvac: HVAC,
        room: Room,
        base_poll_interval: int,
        publish: PublishCallback,
        structure: Structure | None = None,
        randint: Callable[[int, int], int] = random.randint,
    ) -> None:
        """Initialize the reconciler."""
        self._client = client
        self._hvac = hvac.with_room(room)
        self._room = room
        self._base_poll_interval = base_poll_interval
        self._publish = publish
        self._randint = randint
        self.structure = structure
        self._tasks: list[asyncio.Task[None]] = []

    @property
    def device_id(self) -> str:
        """Return the HVAC unit id."""
        return self._hvac.id

    @property
    def name(self) -> str:
        """Return a display name for log messages."""
        return self._room.name or self._hvac.name or self._hvac.id

    @property
    def hvac(self) -> HVAC:
        """Return the cached HVAC unit."""
        return self._hvac

    @property
    def room(self) -> Room:
        """Return the cached room."""
        return self._room

    @property
    def is_running(self) -> bool:
        """Return True while the poll tasks are alive."""
        return any(not task.done() for task in self._tasks)

    def next_interval(self) -> int:
        """Return the delay before the next tick, re-rolled on every call."""
        return self._base_poll_interval + self._randint(POLL_JITTER_MIN, POLL_JITTER_MAX)

    def snapshot(self) -> ThermostatUpdate:
        """Build the host-facing view of the cached state."""
        return ThermostatUpdate(
            device_id=self._hvac.id,
            current_temperature_c=self._room.current_temperature_c,
            current_humidity=self._room.current_humidity,
            target_state=target_state(self._hvac),
            current_state=current_state(self._hvac, self._room),
            set_point_c=self._hvac.set_point_c,
            temperature_scale=self._hvac.temperature_scale,
        )

    def async_start(self) -> None:
        """Start both poll loops; each fetches immediately before its first wait."""
        if self.is_running:
            return
        self._tasks = [
            asyncio.create_task(
                self._async_poll_loop(self.async_refresh_room),
                name=f"flair_room_poll_{self.device_id}",
            ),
            asyncio.create_task(
                self._async_poll_loop(self.async_refresh_hvac),
                name=f"flair_hvac_poll_{self.device_id}",
            ),
        ]

    async def async_stop(self) -> None:
        """Cancel both poll loops and wait for them to finish."""
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    async def _async_poll_loop(self, refresh: Callable[[], Awaitable[object]]) -> None:
        while True:
            try:
                await refresh()
            except Exception:
                _LOGGER.exception("Unexpected error polling %s", self.name)
            await asyncio.sleep(self.next_interval())

    async def async_fetch_hvac(self) -> HVAC:
        """Fetch the HVAC unit, update the cache and publish it.

        Raises `FlairApiError` if the fetch fails; the cache is left alone.
        """
        hvac = await self._client.async_get_hvac(self._hvac)
        self.apply_hvac(hvac)
        return self._hvac

    async def async_refresh_hvac(self) -> HVAC:
        """Fetch and publish the HVAC unit, returning the cache if the fetch fails."""
        try:
            return await self.async_fetch_hvac()
        except FlairApiError as err:
            _LOGGER.error("Error refreshing HVAC unit for %s: %s", self.name, err)
            return self._hvac

    async def async_refresh_room(self) -> Room:
        """Fetch the room, update the cache and publish it.

        Returns the cached room unchanged if the fetch fails.
        """
        try:
            room = await self._client.async_get_room(self._room)
        except FlairApiError as err:
            _LOGGER.error("Error refreshing room readings for %s: %s", self.name, err)
            return self._room

        self._room = room
        self._hvac = self._hvac.with_room(room)
        self._publish(self.device_id, self.snapshot())
        _LOGGER.debug(
            "Pushed updated current temperature for %s: %s",
            self.name,
            room.current_temperature_c,
        )
        return room

    def store_hvac(self, hvac: HVAC) -> None:
        """Replace the cached unit with the result of a successful write."""
        self._hvac = hvac.with_room(self._room)

    def apply_hvac(self, hvac: HVAC) -> None:
        """Replace the cached unit and publish the new state."""
        self.store_hvac(hvac)
        update = self.snapshot()
        self._publish(self.device_id, update)
        _LOGGER.debug(
            "Pushed updated HVAC state for %s: %s, set point %s",
            self.name,
            update.target_state,
            update.set_point_c,
        )

    def update_from_structure(self, structure: Structure) -> None:
        """Receive the latest structure from the mode guard."""
        self.structure = structure

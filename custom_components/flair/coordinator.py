"""Host-facing coordinator that ties the Flair devices together."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
import logging
import random

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers.update_coordinator import DataUpdateCoordinator

from .api import FlairApi
from .const import DOMAIN
from .dispatcher import CommandDispatcher
from .models import HVAC, Room
from .reconciler import StateReconciler, ThermostatUpdate
from .structure import StructureModeGuard
from .translator import TargetState

_LOGGER = logging.getLogger(__name__)


class FlairDeviceCoordinator(DataUpdateCoordinator[ThermostatUpdate]):
    """Latest published state of one HVAC unit.

    There is no update interval. The unit's reconciler runs its own jittered
    poll loops and pushes every fresh state in with `async_publish`.
    """

    def __init__(
        self,
        hass: HomeAssistant,
        config_entry: ConfigEntry | None,
        device_id: str,
    ) -> None:
        """Initialize the device coordinator."""
        super().__init__(
            hass,
            _LOGGER,
            config_entry=config_entry,
            name=f"{DOMAIN}_{device_id}",
            update_interval=None,
        )
        self.device_id = device_id

    @callback
    def async_publish(self, device_id: str, update: ThermostatUpdate) -> None:
        """Receive fresh state from the reconciler and notify listeners."""
        self.async_set_updated_data(update)

    async def _async_update_data(self) -> ThermostatUpdate:
        # The poll loops do the fetching; a requested refresh re-sends the cache
        return self.data


@dataclass
class FlairDevice:
    """Runtime objects owned by one HVAC unit."""

    reconciler: StateReconciler
    dispatcher: CommandDispatcher
    coordinator: FlairDeviceCoordinator
    remove_structure_listener: Callable[[], None]


class FlairCoordinator:
    """Own the structure guard and one reconciler/dispatcher pair per unit.

    Each unit's state reaches the host through its `FlairDeviceCoordinator`;
    commands go through `handle_set_target_mode` and
    `handle_set_target_temperature`.
    """

    def __init__(
        self,
        hass: HomeAssistant,
        client: FlairApi,
        poll_interval: int,
        config_entry: ConfigEntry | None = None,
        randint: Callable[[int, int], int] = random.randint,
    ) -> None:
        """Initialize the coordinator."""
        self.hass = hass
        self.client = client
        self.config_entry = config_entry
        self.guard = StructureModeGuard(client)
        self._poll_interval = poll_interval
        self._randint = randint
        self._devices: dict[str, FlairDevice] = {}

    @property
    def devices(self) -> dict[str, FlairDevice]:
        """Return the registered devices keyed by HVAC unit id."""
        return self._devices

    async def async_discover(self) -> list[HVAC]:
        """List the structure's HVAC units with their rooms attached.

        Units that aren't assigned to a room are skipped since there is no
        puck to read the room temperature from.
        """
        structure = await self.guard.async_get_structure()
        hvacs = await self.client.async_get_hvacs(structure)

        discovered: list[HVAC] = []
        for hvac in hvacs:
            if hvac.room_id is None:
                _LOGGER.warning("Skipping HVAC unit %s: not assigned to a room", hvac.name)
                continue
            room = await self.client.async_get_room(Room(id=hvac.room_id))
            discovered.append(hvac.with_room(room))

        _LOGGER.info("Discovered %d Flair HVAC units", len(discovered))
        return discovered

    def async_add_device(self, hvac: HVAC) -> FlairDevice:
        """Register a unit and start polling it."""
        if hvac.id in self._devices:
            _LOGGER.debug("HVAC unit %s already registered", hvac.name)
            return self._devices[hvac.id]

        device_coordinator = FlairDeviceCoordinator(self.hass, self.config_entry, hvac.id)
        reconciler = StateReconciler(
            self.client,
            hvac,
            hvac.room or Room(id=hvac.room_id),
            self._poll_interval,
            device_coordinator.async_publish,
            structure=self.guard.structure,
            randint=self._randint,
        )
        device_coordinator.async_set_updated_data(reconciler.snapshot())

        device = FlairDevice(
            reconciler=reconciler,
            dispatcher=CommandDispatcher(self.client, self.guard, reconciler),
            coordinator=device_coordinator,
            remove_structure_listener=self.guard.async_add_listener(
                reconciler.update_from_structure
            ),
        )
        self._devices[hvac.id] = device
        reconciler.async_start()
        _LOGGER.info("Registered HVAC unit %s", hvac.name or hvac.id)
        return device

    async def async_remove_device(self, device_id: str) -> None:
        """Stop polling a unit and drop it from the structure fan-out."""
        device = self._devices.pop(device_id, None)
        if device is None:
            return
        device.remove_structure_listener()
        await device.reconciler.async_stop()
        await device.coordinator.async_shutdown()
        _LOGGER.debug("Removed HVAC unit %s", device_id)

    async def async_shutdown(self) -> None:
        """Stop every device."""
        for device_id in list(self._devices):
            await self.async_remove_device(device_id)

    def get_state(self, device_id: str) -> ThermostatUpdate:
        """Return the cached state of a unit."""
        return self._devices[device_id].reconciler.snapshot()

    async def handle_set_target_mode(
        self, device_id: str, desired: TargetState
    ) -> TargetState:
        """Change a unit's target heating/cooling state."""
        return await self._devices[device_id].dispatcher.async_set_target_mode(desired)

    async def handle_set_target_temperature(self, device_id: str, value_c: float) -> float:
        """Change a unit's set point; returns the value in its display scale."""
        return await self._devices[device_id].dispatcher.async_set_target_temperature(
            value_c
        )

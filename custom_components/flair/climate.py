"""Climate platform for the Flair HVAC integration."""

from __future__ import annotations

import logging
from typing import Any

from homeassistant.components.climate import (
    ClimateEntity,
    ClimateEntityFeature,
    HVACAction,
    HVACMode,
)
from homeassistant.config_entries import ConfigEntry
from homeassistant.const import ATTR_TEMPERATURE, UnitOfTemperature
from homeassistant.core import HomeAssistant, callback
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers.device_registry import DeviceInfo
from homeassistant.helpers.entity_platform import AddEntitiesCallback
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from .api import FlairApiError
from .const import DOMAIN, MAX_TEMP, MIN_TEMP
from .coordinator import FlairCoordinator, FlairDeviceCoordinator
from .reconciler import ThermostatUpdate
from .structure import StructureUnavailableError
from .translator import CurrentState, TargetState

_LOGGER = logging.getLogger(__name__)

TARGET_TO_HVAC_MODE: dict[TargetState, HVACMode] = {
    TargetState.OFF: HVACMode.OFF,
    TargetState.COOL: HVACMode.COOL,
    TargetState.HEAT: HVACMode.HEAT,
    TargetState.AUTO: HVACMode.AUTO,
}

# Reverse mapping
HVAC_MODE_TO_TARGET: dict[HVACMode, TargetState] = {
    v: k for k, v in TARGET_TO_HVAC_MODE.items()
}

CURRENT_TO_HVAC_ACTION: dict[CurrentState, HVACAction] = {
    CurrentState.OFF: HVACAction.OFF,
    CurrentState.COOL: HVACAction.COOLING,
    CurrentState.HEAT: HVACAction.HEATING,
}


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up climate entities from a config entry."""
    coordinator: FlairCoordinator = hass.data[DOMAIN][entry.entry_id]

    entities = [
        FlairThermostat(coordinator, device_id)
        for device_id in coordinator.devices
    ]

    async_add_entities(entities, update_before_add=False)


class FlairThermostat(CoordinatorEntity[FlairDeviceCoordinator], ClimateEntity):
    """Representation of a Flair-controlled HVAC unit."""

    _attr_has_entity_name = True
    _attr_temperature_unit = UnitOfTemperature.CELSIUS
    _attr_min_temp = MIN_TEMP
    _attr_max_temp = MAX_TEMP
    _attr_target_temperature_step = 0.5
    _attr_supported_features = (
        ClimateEntityFeature.TARGET_TEMPERATURE
        | ClimateEntityFeature.TURN_ON
        | ClimateEntityFeature.TURN_OFF
    )
    _attr_hvac_modes = [
        HVACMode.OFF,
        HVACMode.COOL,
        HVACMode.HEAT,
        HVACMode.AUTO,
    ]

    def __init__(self, hub: FlairCoordinator, device_id: str) -> None:
        """Initialize the climate entity."""
        device = hub.devices[device_id]
        super().__init__(device.coordinator)
        self._hub = hub
        self._device_id = device_id
        self._attr_unique_id = f"{DOMAIN}_{device_id}"
        self._attr_name = None
        self._attr_device_info = DeviceInfo(
            identifiers={(DOMAIN, device_id)},
            name=device.reconciler.hvac.name or device.reconciler.name,
            manufacturer="Flair",
            model="HVAC Unit",
            serial_number=device_id,
        )
        self._last_on_state = (
            self._thermostat.target_state
            if self._thermostat.target_state is not TargetState.OFF
            else TargetState.AUTO
        )

    @property
    def _thermostat(self) -> ThermostatUpdate:
        """Return the latest state pushed by the poll loops."""
        return self.coordinator.data

    async def async_will_remove_from_hass(self) -> None:
        """Stop polling the unit once the entity goes away."""
        await super().async_will_remove_from_hass()
        await self._hub.async_remove_device(self._device_id)

    @callback
    def _handle_coordinator_update(self) -> None:
        """Handle updated data from the coordinator."""
        if self._thermostat.target_state is not TargetState.OFF:
            self._last_on_state = self._thermostat.target_state
        self.async_write_ha_state()

    @property
    def hvac_mode(self) -> HVACMode:
        """Return the target HVAC mode."""
        return TARGET_TO_HVAC_MODE[self._thermostat.target_state]

    @property
    def hvac_action(self) -> HVACAction:
        """Return what the unit is doing, inferred in auto mode."""
        return CURRENT_TO_HVAC_ACTION[self._thermostat.current_state]

    @property
    def current_temperature(self) -> float | None:
        """Return the room temperature."""
        return self._thermostat.current_temperature_c

    @property
    def current_humidity(self) -> float | None:
        """Return the room humidity."""
        return self._thermostat.current_humidity

    @property
    def target_temperature(self) -> float | None:
        """Return the set point."""
        return self._thermostat.set_point_c

    async def async_set_hvac_mode(self, hvac_mode: HVACMode) -> None:
        """Set the HVAC mode."""
        desired = HVAC_MODE_TO_TARGET[hvac_mode]
        try:
            await self._hub.handle_set_target_mode(self._device_id, desired)
        except (FlairApiError, StructureUnavailableError) as err:
            raise HomeAssistantError(
                f"Error setting {self.entity_id} to {hvac_mode}: {err}"
            ) from err

    async def async_set_temperature(self, **kwargs: Any) -> None:
        """Set the target temperature."""
        hvac_mode = kwargs.get("hvac_mode")
        if hvac_mode is not None:
            await self.async_set_hvac_mode(hvac_mode)

        temperature = kwargs.get(ATTR_TEMPERATURE)
        if temperature is None:
            return

        try:
            ack = await self._hub.handle_set_target_temperature(
                self._device_id, float(temperature)
            )
        except FlairApiError as err:
            raise HomeAssistantError(
                f"Error setting {self.entity_id} temperature: {err}"
            ) from err
        _LOGGER.debug("Set %s target temperature -> %s", self.entity_id, ack)

    async def async_turn_on(self) -> None:
        """Turn the unit on in its last active mode."""
        await self.async_set_hvac_mode(TARGET_TO_HVAC_MODE[self._last_on_state])

    async def async_turn_off(self) -> None:
        """Turn the unit off."""
        await self.async_set_hvac_mode(HVACMode.OFF)

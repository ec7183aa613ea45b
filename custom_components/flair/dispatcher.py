"""Command sequences that change an HVAC unit's mode and set point."""

from __future__ import annotations

import logging

from .api import FlairApi, FlairApiError
from .models import HVACPowerMode, StructureMode
from .reconciler import StateReconciler
from .structure import StructureModeGuard
from .translator import TargetState, target_state, target_state_to_device

_LOGGER = logging.getLogger(__name__)


class CommandDispatcher:
    """Run the ordered remote calls behind a thermostat command.

    The first failing call aborts the sequence and its error reaches the
    caller. Nothing is rolled back: if the unit rejects a command after the
    structure was switched to manual, the structure stays manual.
    """

    def __init__(
        self,
        client: FlairApi,
        guard: StructureModeGuard,
        reconciler: StateReconciler,
    ) -> None:
        """Initialize the dispatcher."""
        self._client = client
        self._guard = guard
        self._reconciler = reconciler

    async def async_set_target_mode(self, desired: TargetState) -> TargetState:
        """Put the structure in manual mode, then drive the unit to `desired`.

        Returns the target state of the unit as re-read from the server, or
        as confirmed by the last write if the re-read fails.
        """
        desired = TargetState(desired)
        power, mode = target_state_to_device(desired)

        # Flair automation would override a manual change in auto mode
        await self._guard.async_set_mode(StructureMode.MANUAL)

        hvac = await self._client.async_set_hvac_power_mode(self._reconciler.hvac, power)
        self._reconciler.store_hvac(hvac)
        if power is HVACPowerMode.ON:
            hvac = await self._client.async_set_hvac_mode(hvac, mode)
            self._reconciler.store_hvac(hvac)

        _LOGGER.debug("Set %s to %s, re-reading unit state", self._reconciler.name, desired)
        try:
            hvac = await self._reconciler.async_fetch_hvac()
        except FlairApiError as err:
            # Fall back to what the writes confirmed
            _LOGGER.warning(
                "Could not re-read %s after the mode change: %s", self._reconciler.name, err
            )
            self._reconciler.apply_hvac(hvac)
        return target_state(hvac)

    async def async_set_target_temperature(self, value_c: float) -> float:
        """Change the set point; returns it in the unit's display scale."""
        hvac = await self._client.async_set_hvac_temperature(self._reconciler.hvac, value_c)
        self._reconciler.apply_hvac(hvac)
        ack = hvac.to_display_units(value_c)
        _LOGGER.debug("Set target temperature for %s -> %s", self._reconciler.name, ack)
        return ack

"""Translate between Flair HVAC state and normalised thermostat states."""

from __future__ import annotations

from enum import StrEnum

from .models import HVAC, HVACMode, HVACPowerMode, Room


class TargetState(StrEnum):
    """Heating/cooling state the thermostat is asked to hold."""

    OFF = "off"
    COOL = "cool"
    HEAT = "heat"
    AUTO = "auto"


class CurrentState(StrEnum):
    """Heating/cooling state the thermostat is in right now."""

    OFF = "off"
    COOL = "cool"
    HEAT = "heat"


MODE_TO_TARGET: dict[HVACMode, TargetState] = {
    HVACMode.COOL: TargetState.COOL,
    HVACMode.HEAT: TargetState.HEAT,
    HVACMode.AUTO: TargetState.AUTO,
}

TARGET_TO_MODE: dict[TargetState, HVACMode] = {v: k for k, v in MODE_TO_TARGET.items()}


def target_state(hvac: HVAC) -> TargetState:
    """Return the target state an HVAC unit is configured for."""
    if hvac.power is HVACPowerMode.OFF:
        return TargetState.OFF
    return MODE_TO_TARGET[hvac.mode]


def current_state(hvac: HVAC, room: Room | None) -> CurrentState:
    """Return what the HVAC unit is doing right now.

    Mini-splits driven by a puck are one-way IR devices, so in AUTO there is
    no telemetry and the state is inferred from the set point and the room
    reading. The puck is assumed to sit in the same room as the unit.
    """
    if hvac.power is HVACPowerMode.OFF:
        return CurrentState.OFF
    if hvac.mode is HVACMode.COOL:
        return CurrentState.COOL
    if hvac.mode is HVACMode.HEAT:
        return CurrentState.HEAT

    # AUTO: a set point equal to the room temperature counts as heating
    room_temp = room.current_temperature_c if room else None
    if room_temp is not None and hvac.set_point_c < room_temp:
        return CurrentState.COOL
    return CurrentState.HEAT


def target_state_to_device(
    desired: TargetState,
) -> tuple[HVACPowerMode, HVACMode | None]:
    """Return the power and mode an HVAC unit needs for a target state."""
    if desired is TargetState.OFF:
        return HVACPowerMode.OFF, None
    return HVACPowerMode.ON, TARGET_TO_MODE[desired]

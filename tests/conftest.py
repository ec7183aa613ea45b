"""Shared fixtures for the Flair tests."""

from __future__ import annotations

from dataclasses import replace
from unittest.mock import AsyncMock, MagicMock

import pytest

from custom_components.flair.api import FlairApi
from custom_components.flair.models import (
    HVAC,
    HVACMode,
    HVACPowerMode,
    Room,
    Structure,
    StructureMode,
    TemperatureScale,
)


@pytest.fixture
def room() -> Room:
    return Room(
        id="room-1",
        name="Bedroom",
        current_temperature_c=22.0,
        current_humidity=45.0,
    )


@pytest.fixture
def hvac() -> HVAC:
    return HVAC(
        id="hvac-1",
        name="Bedroom Mini Split",
        power=HVACPowerMode.ON,
        mode=HVACMode.AUTO,
        set_point_c=20.0,
        temperature_scale=TemperatureScale.C,
        room_id="room-1",
    )


@pytest.fixture
def structure() -> Structure:
    return Structure(id="structure-1", mode=StructureMode.AUTO)


@pytest.fixture
def client(hvac: HVAC, room: Room, structure: Structure) -> AsyncMock:
    """A FlairApi double whose writes echo the requested change back."""

    api = AsyncMock(spec=FlairApi)
    api.async_get_primary_structure.return_value = structure
    api.async_set_structure_mode.side_effect = lambda s, mode: replace(s, mode=mode)
    api.async_get_hvacs.return_value = [hvac]
    api.async_get_hvac.side_effect = lambda h: h
    api.async_get_room.return_value = room
    api.async_set_hvac_power_mode.side_effect = lambda h, power: replace(h, power=power)
    api.async_set_hvac_mode.side_effect = lambda h, mode: replace(h, mode=mode)
    api.async_set_hvac_temperature.side_effect = lambda h, value: replace(
        h, set_point_c=value
    )
    return api


@pytest.fixture
def hass() -> MagicMock:
    """A bare Home Assistant double; the Flair code only reads `hass.data`."""

    hass = MagicMock()
    hass.data = {}
    return hass

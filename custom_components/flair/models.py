"""Data model for Flair structures, rooms and HVAC units."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import StrEnum
from typing import Any

import voluptuous as vol


class InvalidRecordError(ValueError):
    """A structure, room or HVAC record failed validation."""


class StructureMode(StrEnum):
    """Whether Flair automation or the user is in charge of the home."""

    AUTO = "auto"
    MANUAL = "manual"


class HVACPowerMode(StrEnum):
    """Power state of an HVAC unit."""

    ON = "On"
    OFF = "Off"


class HVACMode(StrEnum):
    """Operating mode of an HVAC unit."""

    COOL = "Cool"
    HEAT = "Heat"
    AUTO = "Auto"


class TemperatureScale(StrEnum):
    """Unit the HVAC unit displays and accepts set points in."""

    C = "C"
    F = "F"


def celsius_to_fahrenheit(value: float) -> float:
    """Convert a Celsius temperature to Fahrenheit."""
    return value * 9 / 5 + 32


def fahrenheit_to_celsius(value: float) -> float:
    """Convert a Fahrenheit temperature to Celsius."""
    return (value - 32) * 5 / 9


_ID = vol.All(str, vol.Length(min=1))
_NUMBER = vol.All(vol.Any(int, float), vol.Coerce(float))
_OPTIONAL_NUMBER = vol.Any(None, _NUMBER)

STRUCTURE_SCHEMA = vol.Schema(
    {
        vol.Required("id"): _ID,
        vol.Required("mode"): vol.Coerce(StructureMode),
    },
    extra=vol.REMOVE_EXTRA,
)

ROOM_SCHEMA = vol.Schema(
    {
        vol.Required("id"): _ID,
        vol.Optional("name", default=None): vol.Any(None, str),
        vol.Optional("current_temperature_c", default=None): _OPTIONAL_NUMBER,
        vol.Optional("current_humidity", default=None): _OPTIONAL_NUMBER,
    },
    extra=vol.REMOVE_EXTRA,
)

HVAC_SCHEMA = vol.Schema(
    {
        vol.Required("id"): _ID,
        vol.Optional("name", default=None): vol.Any(None, str),
        vol.Required("power"): vol.Coerce(HVACPowerMode),
        vol.Required("mode"): vol.Coerce(HVACMode),
        vol.Required("set_point_c"): _NUMBER,
        vol.Optional("temperature_scale", default=TemperatureScale.C): vol.Coerce(
            TemperatureScale
        ),
        vol.Optional("room_id", default=None): vol.Any(None, _ID),
        vol.Optional("room", default=None): vol.Any(None, dict),
    },
    extra=vol.REMOVE_EXTRA,
)


def _validate(schema: vol.Schema, kind: str, data: Any) -> dict[str, Any]:
    """Run a schema over a record, raising InvalidRecordError on failure."""
    if not isinstance(data, dict):
        raise InvalidRecordError(f"{kind} record must be a mapping, got {type(data).__name__}")
    try:
        return schema(data)
    except vol.Invalid as err:
        raise InvalidRecordError(f"Invalid {kind} record: {err}") from err


def _resource_parts(resource: Any, kind: str) -> tuple[str, dict[str, Any]]:
    """Split a JSON:API resource object into its id and attributes."""
    if not isinstance(resource, dict):
        raise InvalidRecordError(f"{kind} resource must be a mapping")
    attributes = resource.get("attributes")
    if not isinstance(attributes, dict):
        raise InvalidRecordError(f"{kind} resource has no attributes")
    return resource.get("id"), attributes


@dataclass(frozen=True)
class Structure:
    """A Flair home."""

    id: str
    mode: StructureMode

    @classmethod
    def from_dict(cls, data: Any) -> Structure:
        """Build a structure from a flat record."""
        return cls(**_validate(STRUCTURE_SCHEMA, "structure", data))

    @classmethod
    def from_api(cls, resource: Any) -> Structure:
        """Build a structure from a `structures` resource."""
        resource_id, attributes = _resource_parts(resource, "structure")
        return cls.from_dict({"id": resource_id, "mode": attributes.get("mode")})

    def as_dict(self) -> dict[str, Any]:
        """Return the flat record form of this structure."""
        return {"id": self.id, "mode": self.mode.value}


@dataclass(frozen=True)
class Room:
    """A room and its latest puck readings, always in Celsius."""

    id: str
    name: str | None = None
    current_temperature_c: float | None = None
    current_humidity: float | None = None

    @classmethod
    def from_dict(cls, data: Any) -> Room:
        """Build a room from a flat record."""
        return cls(**_validate(ROOM_SCHEMA, "room", data))

    @classmethod
    def from_api(cls, resource: Any) -> Room:
        """Build a room from a `rooms` resource."""
        resource_id, attributes = _resource_parts(resource, "room")
        return cls.from_dict(
            {
                "id": resource_id,
                "name": attributes.get("name"),
                "current_temperature_c": attributes.get("current-temperature-c"),
                "current_humidity": attributes.get("current-humidity"),
            }
        )

    def as_dict(self) -> dict[str, Any]:
        """Return the flat record form of this room."""
        return {
            "id": self.id,
            "name": self.name,
            "current_temperature_c": self.current_temperature_c,
            "current_humidity": self.current_humidity,
        }


@dataclass(frozen=True)
class HVAC:
    """A mini-split HVAC unit controlled through a Flair puck.

    The set point is stored in Celsius regardless of the unit's display
    scale. `room` is a snapshot taken at the last explicit room fetch.
    """

    id: str
    name: str | None
    power: HVACPowerMode
    mode: HVACMode
    set_point_c: float
    temperature_scale: TemperatureScale = TemperatureScale.C
    room_id: str | None = None
    room: Room | None = None

    @classmethod
    def from_dict(cls, data: Any) -> HVAC:
        """Build an HVAC unit from a flat record."""
        fields = _validate(HVAC_SCHEMA, "hvac", data)
        if fields["room"] is not None:
            fields["room"] = Room.from_dict(fields["room"])
        return cls(**fields)

    @classmethod
    def from_api(cls, resource: Any) -> HVAC:
        """Build an HVAC unit from an `hvac-units` resource.

        The API reports the set point in the unit's own scale.
        """
        resource_id, attributes = _resource_parts(resource, "hvac")
        scale = attributes.get("temperature-scale") or TemperatureScale.C.value
        set_point = attributes.get("temperature")
        if scale == TemperatureScale.F.value and isinstance(set_point, (int, float)):
            set_point = round(fahrenheit_to_celsius(set_point), 2)

        room_id = None
        relationships = resource.get("relationships") or {}
        room_data = (relationships.get("room") or {}).get("data")
        if isinstance(room_data, dict):
            room_id = room_data.get("id")

        return cls.from_dict(
            {
                "id": resource_id,
                "name": attributes.get("name"),
                "power": attributes.get("power"),
                "mode": attributes.get("mode"),
                "set_point_c": set_point,
                "temperature_scale": scale,
                "room_id": room_id,
            }
        )

    def as_dict(self) -> dict[str, Any]:
        """Return the flat record form of this HVAC unit."""
        return {
            "id": self.id,
            "name": self.name,
            "power": self.power.value,
            "mode": self.mode.value,
            "set_point_c": self.set_point_c,
            "temperature_scale": self.temperature_scale.value,
            "room_id": self.room_id,
            "room": self.room.as_dict() if self.room else None,
        }

    def with_room(self, room: Room) -> HVAC:
        """Return a copy of this unit carrying a fresh room snapshot."""
        return replace(self, room=room, room_id=room.id)

    def to_display_units(self, value_c: float) -> float:
        """Express a Celsius value in the unit's display scale."""
        if self.temperature_scale is TemperatureScale.F:
            return round(celsius_to_fahrenheit(value_c), 1)
        return value_c


"""Diagnostics support for the Flair HVAC integration."""

from __future__ import annotations

from typing import Any

from homeassistant.components.diagnostics import async_redact_data
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant

from .const import CONF_CLIENT_SECRET, CONF_PASSWORD, CONF_USERNAME, DOMAIN
from .coordinator import FlairCoordinator

TO_REDACT = {CONF_CLIENT_SECRET, CONF_PASSWORD, CONF_USERNAME}


async def async_get_config_entry_diagnostics(
    hass: HomeAssistant, entry: ConfigEntry
) -> dict[str, Any]:
    """Return diagnostics for a config entry."""
    coordinator: FlairCoordinator = hass.data[DOMAIN][entry.entry_id]
    structure = coordinator.guard.structure

    return {
        "entry": async_redact_data(dict(entry.data), TO_REDACT),
        "structure": structure.as_dict() if structure else None,
        "devices": {
            device_id: {
                "hvac": device.reconciler.hvac.as_dict(),
                "polling": device.reconciler.is_running,
            }
            for device_id, device in coordinator.devices.items()
        },
    }

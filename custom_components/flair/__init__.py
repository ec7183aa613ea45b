"""The Flair HVAC integration."""

from __future__ import annotations

import logging

from homeassistant.config_entries import ConfigEntry
from homeassistant.const import Platform
from homeassistant.core import HomeAssistant
from homeassistant.exceptions import ConfigEntryError, ConfigEntryNotReady
from homeassistant.helpers.aiohttp_client import async_get_clientsession

from .api import AuthenticationError, FlairApi, FlairApiError
from .config import ConfigurationError, validate_config
from .const import DOMAIN
from .coordinator import FlairCoordinator
from .structure import StructureUnavailableError

_LOGGER = logging.getLogger(__name__)

PLATFORMS: list[Platform] = [Platform.CLIMATE]


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Set up Flair from a config entry."""
    try:
        config = validate_config({**entry.data, **entry.options})
    except ConfigurationError as err:
        _LOGGER.error("The Flair config is not valid: %s", err)
        raise ConfigEntryError(str(err)) from err

    client = FlairApi(
        client_id=config.client_id,
        client_secret=config.client_secret,
        username=config.username,
        password=config.password,
        session=async_get_clientsession(hass),
    )
    coordinator = FlairCoordinator(hass, client, config.poll_interval, config_entry=entry)

    try:
        hvacs = await coordinator.async_discover()
    except AuthenticationError as err:
        raise ConfigEntryError(f"Flair rejected the credentials: {err}") from err
    except StructureUnavailableError as err:
        if isinstance(err.__cause__, AuthenticationError):
            raise ConfigEntryError(f"Flair rejected the credentials: {err}") from err
        raise ConfigEntryNotReady(str(err)) from err
    except FlairApiError as err:
        raise ConfigEntryNotReady(f"Error discovering Flair devices: {err}") from err

    for hvac in hvacs:
        coordinator.async_add_device(hvac)

    hass.data.setdefault(DOMAIN, {})
    hass.data[DOMAIN][entry.entry_id] = coordinator

    try:
        await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)
    except Exception:
        hass.data[DOMAIN].pop(entry.entry_id, None)
        await coordinator.async_shutdown()
        raise

    return True


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Unload a config entry."""
    unload_ok = await hass.config_entries.async_unload_platforms(entry, PLATFORMS)

    if unload_ok:
        coordinator: FlairCoordinator = hass.data[DOMAIN].pop(entry.entry_id)
        await coordinator.async_shutdown()

    return unload_ok

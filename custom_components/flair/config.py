"""Validation of the settings a Flair config entry carries."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import voluptuous as vol

from .const import (
    CONF_CLIENT_ID,
    CONF_CLIENT_SECRET,
    CONF_PASSWORD,
    CONF_POLL_INTERVAL,
    CONF_USERNAME,
    DEFAULT_POLL_INTERVAL,
)

_REQUIRED_STRING = vol.All(str, vol.Strip, vol.Length(min=1))

CONFIG_SCHEMA = vol.Schema(
    {
        vol.Required(CONF_CLIENT_ID): _REQUIRED_STRING,
        vol.Required(CONF_CLIENT_SECRET): _REQUIRED_STRING,
        vol.Required(CONF_USERNAME): _REQUIRED_STRING,
        vol.Required(CONF_PASSWORD): vol.All(str, vol.Length(min=1)),
        vol.Optional(CONF_POLL_INTERVAL, default=DEFAULT_POLL_INTERVAL): vol.All(
            vol.Coerce(int), vol.Range(min=0)
        ),
    },
    extra=vol.REMOVE_EXTRA,
)


class ConfigurationError(Exception):
    """Required settings are missing or invalid."""


@dataclass(frozen=True)
class FlairConfig:
    """Validated integration settings."""

    client_id: str
    client_secret: str
    username: str
    password: str
    poll_interval: int = DEFAULT_POLL_INTERVAL


def validate_config(data: Mapping[str, Any]) -> FlairConfig:
    """Validate raw entry data, raising ConfigurationError on problems."""
    try:
        validated = CONFIG_SCHEMA(dict(data))
    except vol.MultipleInvalid as err:
        key = err.path[0] if err.path else None
        if key is not None:
            raise ConfigurationError(f"Invalid or missing setting '{key}': {err.msg}") from err
        raise ConfigurationError(f"Invalid configuration: {err}") from err

    return FlairConfig(
        client_id=validated[CONF_CLIENT_ID],
        client_secret=validated[CONF_CLIENT_SECRET],
        username=validated[CONF_USERNAME],
        password=validated[CONF_PASSWORD],
        poll_interval=validated[CONF_POLL_INTERVAL],
    )

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from homeassistant.data_entry_flow import FlowResultType

from custom_components.flair.api import FlairApiError
from custom_components.flair.config_flow import FlairConfigFlow

USER_INPUT = {
    "client_id": "client",
    "client_secret": "secret",
    "username": "  User@Example.com ",
    "password": "hunter2",
    "poll_interval": 60,
}


def _create_flow(hass: MagicMock) -> FlairConfigFlow:
    flow = FlairConfigFlow()
    flow.hass = hass
    flow.context = {"source": "user"}
    flow.async_set_unique_id = AsyncMock()
    flow._abort_if_unique_id_configured = MagicMock()
    return flow


@pytest.fixture
def api() -> MagicMock:
    api = MagicMock()
    api.async_test_connection = AsyncMock(return_value=True)
    with (
        patch("custom_components.flair.config_flow.FlairApi", return_value=api),
        patch("custom_components.flair.config_flow.async_get_clientsession"),
    ):
        yield api


@pytest.mark.asyncio
async def test_initial_form(hass, api) -> None:
    result = await _create_flow(hass).async_step_user()

    assert result["type"] is FlowResultType.FORM
    assert result["step_id"] == "user"
    assert result["errors"] == {}
    api.async_test_connection.assert_not_called()


@pytest.mark.asyncio
async def test_valid_credentials_create_entry(hass, api) -> None:
    flow = _create_flow(hass)

    result = await flow.async_step_user(dict(USER_INPUT))

    assert result["type"] is FlowResultType.CREATE_ENTRY
    assert result["title"] == "Flair (User@Example.com)"
    assert result["data"]["username"] == "User@Example.com"
    # One entry per account, whatever the casing
    flow.async_set_unique_id.assert_awaited_once_with("user@example.com")
    flow._abort_if_unique_id_configured.assert_called_once()


@pytest.mark.parametrize(
    ("outcome", "error"),
    [
        ({"return_value": False}, "invalid_auth"),
        ({"side_effect": FlairApiError("down")}, "cannot_connect"),
        ({"side_effect": RuntimeError("boom")}, "unknown"),
    ],
)
@pytest.mark.asyncio
async def test_failed_credentials_show_error(hass, api, outcome, error) -> None:
    api.async_test_connection = AsyncMock(**outcome)

    result = await _create_flow(hass).async_step_user(dict(USER_INPUT))

    assert result["type"] is FlowResultType.FORM
    assert result["errors"] == {"base": error}

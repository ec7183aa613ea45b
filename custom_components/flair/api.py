"""API client for the Flair cloud (api.flair.co)."""

from __future__ import annotations

import logging
import time
from typing import Any

import aiohttp

from .const import (
    BASE_URL,
    HVAC_UNITS_PATH,
    OAUTH_SCOPE,
    ROOMS_PATH,
    STRUCTURES_PATH,
    TOKEN_PATH,
    TOKEN_REFRESH_BUFFER,
)
from .models import (
    HVAC,
    HVACMode,
    HVACPowerMode,
    InvalidRecordError,
    Room,
    Structure,
    StructureMode,
    TemperatureScale,
    celsius_to_fahrenheit,
)

_LOGGER = logging.getLogger(__name__)

JSON_API_CONTENT_TYPE = "application/json"


class FlairApiError(Exception):
    """Base exception for API errors."""


class AuthenticationError(FlairApiError):
    """Authentication failed."""


class FlairApi:
    """Client for the Flair cloud API."""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        username: str,
        password: str,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        """Initialize the API client."""
        self._client_id = client_id
        self._client_secret = client_secret
        self._username = username
        self._password = password
        self._session = session
        self._owns_session = session is None
        self._access_token: str | None = None
        self._token_expiry: float = 0

    async def _ensure_session(self) -> aiohttp.ClientSession:
        """Ensure we have an aiohttp session."""
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=10)
            self._session = aiohttp.ClientSession(timeout=timeout)
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close the session if we own it."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()

    async def login(self) -> None:
        """Fetch an access token with the password grant."""
        session = await self._ensure_session()

        data = {
            "client_id": self._client_id,
            "client_secret": self._client_secret,
            "username": self._username,
            "password": self._password,
            "grant_type": "password",
            "scope": OAUTH_SCOPE,
        }

        try:
            async with session.post(f"{BASE_URL}{TOKEN_PATH}", data=data) as resp:
                if resp.status in (400, 401, 403):
                    raise AuthenticationError(
                        f"Login failed with HTTP status {resp.status}"
                    )
                if resp.status != 200:
                    raise FlairApiError(f"Token request failed with HTTP {resp.status}")

                result = await resp.json()
        except aiohttp.ClientError as err:
            raise FlairApiError(f"Connection error during login: {err}") from err

        token = result.get("access_token") if isinstance(result, dict) else None
        if not token:
            raise AuthenticationError("Token response missing access_token")

        self._access_token = token
        self._token_expiry = time.monotonic() + result.get("expires_in", 3600)
        _LOGGER.debug("Obtained Flair access token")

    async def _ensure_token(self) -> str:
        """Return a valid access token, logging in when needed."""
        if (
            self._access_token is None
            or time.monotonic() >= self._token_expiry - TOKEN_REFRESH_BUFFER
        ):
            await self.login()
        return self._access_token

    async def _request(
        self,
        method: str,
        path: str,
        json_data: dict[str, Any] | None = None,
        retry_on_401: bool = True,
    ) -> dict[str, Any]:
        """Make an authenticated API request and return the JSON document."""
        token = await self._ensure_token()
        session = await self._ensure_session()

        headers = {
            "Authorization": f"Bearer {token}",
            "Accept": JSON_API_CONTENT_TYPE,
            "Content-Type": JSON_API_CONTENT_TYPE,
        }

        try:
            async with session.request(
                method, f"{BASE_URL}{path}", headers=headers, json=json_data
            ) as resp:
                if resp.status == 401 and retry_on_401:
                    _LOGGER.debug("Got 401, re-authenticating and retrying")
                    self._access_token = None
                    return await self._request(
                        method, path, json_data, retry_on_401=False
                    )
                if resp.status == 401:
                    raise AuthenticationError(f"{method} {path} was not authorized")
                if resp.status >= 400:
                    text = await resp.text()
                    raise FlairApiError(
                        f"{method} {path} failed with HTTP {resp.status}: {text}"
                    )

                try:
                    document = await resp.json(content_type=None)
                except ValueError as err:
                    raise FlairApiError(f"Invalid JSON from {path}") from err
        except aiohttp.ClientError as err:
            raise FlairApiError(f"Connection error calling {path}: {err}") from err

        if not isinstance(document, dict):
            raise FlairApiError(f"Unexpected response from {path}: {document!r}")
        return document

    async def _get_resource(self, path: str) -> Any:
        document = await self._request("GET", path)
        return document.get("data")

    async def _patch_resource(
        self, path: str, resource_type: str, resource_id: str, attributes: dict[str, Any]
    ) -> Any:
        body = {
            "data": {
                "type": resource_type,
                "id": resource_id,
                "attributes": attributes,
            }
        }
        document = await self._request("PATCH", path, body)
        return document.get("data")

    @staticmethod
    def _parse(factory: Any, resource: Any, path: str) -> Any:
        """Build a model object, turning validation errors into API errors."""
        try:
            return factory(resource)
        except InvalidRecordError as err:
            raise FlairApiError(f"Malformed record from {path}: {err}") from err

    async def async_get_primary_structure(self) -> Structure:
        """Return the structure marked primary, or the first one."""
        resources = await self._get_resource(STRUCTURES_PATH)
        if not isinstance(resources, list) or not resources:
            raise FlairApiError("No structures found on this Flair account")

        primary = next(
            (
                r
                for r in resources
                if isinstance(r, dict) and (r.get("attributes") or {}).get("primary")
            ),
            resources[0],
        )
        return self._parse(Structure.from_api, primary, STRUCTURES_PATH)

    async def async_set_structure_mode(
        self, structure: Structure, mode: StructureMode
    ) -> Structure:
        """Switch a structure between auto and manual mode."""
        path = f"{STRUCTURES_PATH}/{structure.id}"
        resource = await self._patch_resource(
            path, "structures", structure.id, {"mode": StructureMode(mode).value}
        )
        _LOGGER.debug("Set structure %s mode to %s", structure.id, mode)
        return self._parse(Structure.from_api, resource, path)

    async def async_get_hvacs(self, structure: Structure) -> list[HVAC]:
        """List the HVAC units of a structure."""
        path = f"{STRUCTURES_PATH}/{structure.id}/hvac-units"
        resources = await self._get_resource(path) or []
        if not isinstance(resources, list):
            raise FlairApiError(f"Unexpected HVAC unit list from {path}")
        hvacs = [self._parse(HVAC.from_api, r, path) for r in resources]
        _LOGGER.debug("Found %d HVAC units", len(hvacs))
        return hvacs

    async def async_get_hvac(self, hvac: HVAC) -> HVAC:
        """Fetch the current state of an HVAC unit."""
        path = f"{HVAC_UNITS_PATH}/{hvac.id}"
        resource = await self._get_resource(path)
        return self._keep_room(hvac, self._parse(HVAC.from_api, resource, path))

    async def _async_patch_hvac(self, hvac: HVAC, attributes: dict[str, Any]) -> HVAC:
        path = f"{HVAC_UNITS_PATH}/{hvac.id}"
        resource = await self._patch_resource(path, "hvac-units", hvac.id, attributes)
        _LOGGER.debug("Controlled HVAC unit %s: %s", hvac.id, attributes)
        return self._keep_room(hvac, self._parse(HVAC.from_api, resource, path))

    async def async_set_hvac_power_mode(self, hvac: HVAC, power: HVACPowerMode) -> HVAC:
        """Turn an HVAC unit on or off."""
        return await self._async_patch_hvac(hvac, {"power": HVACPowerMode(power).value})

    async def async_set_hvac_mode(self, hvac: HVAC, mode: HVACMode) -> HVAC:
        """Change the operating mode of an HVAC unit."""
        return await self._async_patch_hvac(hvac, {"mode": HVACMode(mode).value})

    async def async_set_hvac_temperature(self, hvac: HVAC, value_c: float) -> HVAC:
        """Change the set point of an HVAC unit; the value is in Celsius."""
        value = value_c
        if hvac.temperature_scale is TemperatureScale.F:
            value = round(celsius_to_fahrenheit(value_c), 1)
        return await self._async_patch_hvac(hvac, {"temperature": value})

    async def async_get_room(self, room: Room) -> Room:
        """Fetch the latest readings for a room."""
        path = f"{ROOMS_PATH}/{room.id}"
        resource = await self._get_resource(path)
        return self._parse(Room.from_api, resource, path)

    @staticmethod
    def _keep_room(previous: HVAC, hvac: HVAC) -> HVAC:
        """Carry the cached room snapshot over to a freshly read unit."""
        if previous.room is not None and hvac.room_id in (None, previous.room.id):
            return hvac.with_room(previous.room)
        return hvac

    async def async_test_connection(self) -> bool:
        """Test the connection and credentials. Returns True on success."""
        try:
            await self.login()
            return True
        except AuthenticationError:
            return False

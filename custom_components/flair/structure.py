"""Shared access to the Flair structure and its auto/manual mode."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
import logging

from .api import FlairApi, FlairApiError
from .models import Structure, StructureMode

_LOGGER = logging.getLogger(__name__)

StructureListener = Callable[[Structure], None]


class StructureUnavailableError(Exception):
    """The structure could not be fetched and nothing is cached."""


def _retrieve_exception(task: asyncio.Task[Structure]) -> None:
    """Mark a failed fetch as retrieved when every caller was cancelled."""
    if not task.cancelled():
        task.exception()


class StructureModeGuard:
    """Single-flight cache for the primary structure.

    The structure is fetched once per process. Concurrent callers that arrive
    while the first fetch is in flight share its result or its failure.
    Mode changes replace the cache in place and are pushed to every listener
    so devices never have to poll the structure themselves.
    """

    def __init__(self, client: FlairApi) -> None:
        """Initialize the guard."""
        self._client = client
        self._structure: Structure | None = None
        self._pending: asyncio.Task[Structure] | None = None
        self._listeners: list[StructureListener] = []

    @property
    def structure(self) -> Structure | None:
        """Return the cached structure, if any."""
        return self._structure

    async def async_get_structure(self) -> Structure:
        """Return the cached structure, fetching it on first use."""
        if self._structure is not None:
            return self._structure

        if self._pending is None:
            self._pending = asyncio.ensure_future(self._async_fetch())
            self._pending.add_done_callback(_retrieve_exception)

        # Shield so one caller being cancelled doesn't abort the shared fetch
        return await asyncio.shield(self._pending)

    async def _async_fetch(self) -> Structure:
        try:
            structure = await self._client.async_get_primary_structure()
        except FlairApiError as err:
            raise StructureUnavailableError(
                f"There was an error getting your primary Flair home from the API: {err}"
            ) from err
        finally:
            self._pending = None

        self._structure = structure
        _LOGGER.debug("Loaded structure %s in %s mode", structure.id, structure.mode)
        return structure

    async def async_set_mode(self, mode: StructureMode) -> Structure:
        """Set the structure mode and fan the result out to all listeners.

        The remote call is always made, even when the cached mode already
        matches, because the structure may have changed on the server.
        """
        structure = await self._client.async_set_structure_mode(
            await self.async_get_structure(), mode
        )
        self._structure = structure
        for listener in list(self._listeners):
            listener(structure)
        return structure

    def async_add_listener(self, listener: StructureListener) -> Callable[[], None]:
        """Register a structure listener; returns a function that removes it."""
        self._listeners.append(listener)

        def remove_listener() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove_listener

from __future__ import annotations

import asyncio
from dataclasses import replace
import logging
from unittest.mock import MagicMock

import pytest

from custom_components.flair.api import FlairApiError
from custom_components.flair.models import HVAC, Structure, StructureMode
from custom_components.flair.reconciler import StateReconciler, ThermostatUpdate
from custom_components.flair.translator import CurrentState, TargetState


def _reconciler(client, hvac, room, publish, base=3600, randint=None) -> StateReconciler:
    return StateReconciler(
        client,
        hvac,
        room,
        base,
        publish,
        randint=randint or (lambda a, b: a),
    )


async def _spin(times: int = 10) -> None:
    for _ in range(times):
        await asyncio.sleep(0)


def test_next_interval_is_rerolled_every_tick(client, hvac, room) -> None:
    randint = MagicMock(side_effect=[3, 17])
    reconciler = _reconciler(client, hvac, room, MagicMock(), base=60, randint=randint)

    assert reconciler.next_interval() == 63
    assert reconciler.next_interval() == 77
    randint.assert_called_with(1, 20)
    assert randint.call_count == 2


def test_snapshot_derives_states(client, hvac, room) -> None:
    reconciler = _reconciler(client, hvac, room, MagicMock())

    update = reconciler.snapshot()

    assert update == ThermostatUpdate(
        device_id="hvac-1",
        current_temperature_c=22.0,
        current_humidity=45.0,
        target_state=TargetState.AUTO,
        current_state=CurrentState.COOL,
        set_point_c=20.0,
        temperature_scale=hvac.temperature_scale,
    )


@pytest.mark.asyncio
async def test_refresh_hvac_replaces_cache_and_publishes(client, hvac, room) -> None:
    publish = MagicMock()
    fresh = replace(hvac, set_point_c=24.0)
    client.async_get_hvac.side_effect = None
    client.async_get_hvac.return_value = fresh
    reconciler = _reconciler(client, hvac, room, publish)

    result = await reconciler.async_refresh_hvac()

    assert result.set_point_c == 24.0
    assert reconciler.hvac.room == room
    publish.assert_called_once()
    device_id, update = publish.call_args.args
    assert device_id == "hvac-1"
    assert update.set_point_c == 24.0
    # 24 above a 22 degree room in auto means heating
    assert update.current_state is CurrentState.HEAT


@pytest.mark.asyncio
async def test_refresh_room_replaces_cache_and_publishes(client, hvac, room) -> None:
    publish = MagicMock()
    client.async_get_room.return_value = replace(room, current_temperature_c=18.0)
    reconciler = _reconciler(client, hvac, room, publish)

    result = await reconciler.async_refresh_room()

    assert result.current_temperature_c == 18.0
    assert reconciler.room.current_temperature_c == 18.0
    assert reconciler.hvac.room.current_temperature_c == 18.0
    update = publish.call_args.args[1]
    assert update.current_temperature_c == 18.0
    assert update.current_state is CurrentState.HEAT


@pytest.mark.asyncio
async def test_failed_room_poll_keeps_previous_reading(
    client, hvac, room, caplog: pytest.LogCaptureFixture
) -> None:
    publish = MagicMock()
    client.async_get_room.side_effect = FlairApiError("timeout")
    reconciler = _reconciler(client, hvac, room, publish)

    with caplog.at_level(logging.ERROR):
        result = await reconciler.async_refresh_room()

    assert result is room
    assert reconciler.room.current_temperature_c == 22.0
    publish.assert_not_called()
    assert "Error refreshing room readings for Bedroom" in caplog.text


@pytest.mark.asyncio
async def test_failed_hvac_poll_keeps_previous_state(client, hvac, room) -> None:
    publish = MagicMock()
    client.async_get_hvac.side_effect = FlairApiError("bad gateway")
    reconciler = _reconciler(client, hvac, room, publish)
    before = reconciler.hvac

    result = await reconciler.async_refresh_hvac()

    assert result is before
    assert reconciler.hvac is before
    publish.assert_not_called()


@pytest.mark.asyncio
async def test_fetch_hvac_raises_and_keeps_cache(client, hvac, room) -> None:
    publish = MagicMock()
    client.async_get_hvac.side_effect = FlairApiError("bad gateway")
    reconciler = _reconciler(client, hvac, room, publish)
    before = reconciler.hvac

    with pytest.raises(FlairApiError):
        await reconciler.async_fetch_hvac()

    assert reconciler.hvac is before
    publish.assert_not_called()


@pytest.mark.asyncio
async def test_start_fetches_immediately(client, hvac, room) -> None:
    publish = MagicMock()
    reconciler = _reconciler(client, hvac, room, publish)

    reconciler.async_start()
    await _spin()

    assert reconciler.is_running
    client.async_get_room.assert_awaited_once()
    client.async_get_hvac.assert_awaited_once()
    assert publish.call_count == 2

    await reconciler.async_stop()
    assert not reconciler.is_running


@pytest.mark.asyncio
async def test_start_twice_does_not_duplicate_tasks(client, hvac, room) -> None:
    reconciler = _reconciler(client, hvac, room, MagicMock())

    reconciler.async_start()
    reconciler.async_start()
    await _spin()

    client.async_get_room.assert_awaited_once()
    await reconciler.async_stop()


@pytest.mark.asyncio
async def test_poll_loop_survives_failures(client, hvac, room) -> None:
    calls = 0

    async def flaky_get_hvac(current: HVAC) -> HVAC:
        nonlocal calls
        calls += 1
        if calls == 1:
            raise FlairApiError("boom")
        if calls == 2:
            raise ValueError("unexpected")
        return replace(current, set_point_c=23.0)

    client.async_get_hvac.side_effect = flaky_get_hvac
    reconciler = _reconciler(client, hvac, room, MagicMock(), base=0, randint=lambda a, b: 0)

    reconciler.async_start()
    await _spin(20)
    await reconciler.async_stop()

    assert calls >= 3
    assert reconciler.hvac.set_point_c == 23.0


@pytest.mark.asyncio
async def test_stop_cancels_sleeping_loops(client, hvac, room) -> None:
    reconciler = _reconciler(client, hvac, room, MagicMock())
    reconciler.async_start()
    await _spin()

    await reconciler.async_stop()
    await _spin()

    client.async_get_room.assert_awaited_once()
    client.async_get_hvac.assert_awaited_once()


def test_store_hvac_does_not_publish(client, hvac, room) -> None:
    publish = MagicMock()
    reconciler = _reconciler(client, hvac, room, publish)

    reconciler.store_hvac(replace(hvac, set_point_c=19.0))

    assert reconciler.hvac.set_point_c == 19.0
    assert reconciler.hvac.room == room
    publish.assert_not_called()


def test_update_from_structure(client, hvac, room) -> None:
    reconciler = _reconciler(client, hvac, room, MagicMock())
    structure = Structure(id="structure-1", mode=StructureMode.MANUAL)

    reconciler.update_from_structure(structure)

    assert reconciler.structure is structure

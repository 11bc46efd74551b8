from __future__ import annotations

import asyncio

import pytest

from pysubtree import ABSENT, ManualScheduler, Store


def test_path_watch_version_tracks_changes() -> None:
    scheduler = ManualScheduler()
    store = Store({"summary": {"total": 0}}, scheduler=scheduler)
    watch = store.watch("summary.total")

    assert watch.value == 0
    assert watch.version == 0

    store.request_flush()
    scheduler.run_pending()
    assert watch.version == 0

    store.get_state()["summary"]["total"] = 2
    store.request_flush()
    scheduler.run_pending()
    assert watch.version == 1
    assert watch.value == 2


def test_whole_watch_bumps_every_flush() -> None:
    scheduler = ManualScheduler()
    store = Store({"v": 0}, scheduler=scheduler)
    watch = store.watch()

    for _ in range(3):
        store.request_flush()
        scheduler.run_pending()

    assert watch.version == 3
    assert watch.value is store.get_state()
    assert watch.path is None


def test_watch_close_unsubscribes() -> None:
    scheduler = ManualScheduler()
    store = Store({"v": 0}, scheduler=scheduler)

    with store.watch("v") as watch:
        assert store.listener_count == 1
    assert watch.closed
    assert store.listener_count == 0

    store.set_partial(v=1)
    scheduler.run_pending()
    assert watch.version == 0
    watch.close()


def test_watch_value_for_missing_path() -> None:
    store = Store({"v": 0}, scheduler=ManualScheduler())
    assert store.watch("missing.key").value is ABSENT


@pytest.mark.asyncio
async def test_changed_resolves_on_next_change() -> None:
    store = Store({"status": "idle"})
    watch = store.watch("status")

    waiter = asyncio.create_task(watch.changed(timeout=1.0))
    await asyncio.sleep(0)

    store.set_partial(status="busy")
    assert await waiter is True
    assert watch.value == "busy"


@pytest.mark.asyncio
async def test_changed_times_out_when_value_is_stable() -> None:
    store = Store({"status": "idle"})
    watch = store.watch("status")

    store.set_partial(status="idle")
    assert await watch.changed(timeout=0.05) is False
    assert watch.version == 0


@pytest.mark.asyncio
async def test_changed_returns_false_once_closed() -> None:
    store = Store({"status": "idle"})
    watch = store.watch("status")

    waiter = asyncio.create_task(watch.changed())
    await asyncio.sleep(0)
    watch.close()

    assert await waiter is False
    assert await watch.changed() is False

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from pysubtree import Store, StoreConfig
from pysubtree.exceptions import SubtreeSchedulerError


@pytest.mark.asyncio
async def test_flush_is_deferred_to_event_loop() -> None:
    store = Store({"open": False})
    calls: list[None] = []
    store.subscribe(lambda: calls.append(None))

    store.request_flush()
    assert calls == []
    assert store.pending

    await asyncio.sleep(0)
    assert len(calls) == 1
    assert not store.pending


@pytest.mark.asyncio
async def test_many_requests_one_flush_observing_final_state() -> None:
    store = Store({"count": 0})
    seen: list[int] = []
    store.subscribe(lambda: seen.append(store.get_state()["count"]))

    for _ in range(25):
        store.get_state()["count"] += 1
        store.request_flush()
    await store.wait_flushed()

    assert seen == [25]
    assert store.flush_count == 1


@pytest.mark.asyncio
async def test_wait_flushed_without_pending_returns_immediately() -> None:
    store = Store({})
    await asyncio.wait_for(store.wait_flushed(), timeout=0.1)
    assert store.flush_count == 0


@pytest.mark.asyncio
async def test_flush_delay_uses_call_later() -> None:
    store = Store({"v": 0}, config=StoreConfig(flush_delay=0.05))
    calls: list[None] = []
    store.subscribe(lambda: calls.append(None))

    store.set_partial(v=1)
    await asyncio.sleep(0)
    assert calls == []

    await asyncio.wait_for(store.wait_flushed(), timeout=1.0)
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_listener_error_goes_to_loop_exception_handler() -> None:
    loop = asyncio.get_running_loop()
    contexts: list[dict[str, Any]] = []
    previous = loop.get_exception_handler()
    loop.set_exception_handler(lambda _loop, context: contexts.append(context))
    try:
        store = Store({"v": 0})
        after: list[None] = []

        def broken() -> None:
            raise ValueError("bad render")

        store.subscribe(broken)
        store.subscribe(lambda: after.append(None))
        store.request_flush()
        await store.wait_flushed()
    finally:
        loop.set_exception_handler(previous)

    assert len(after) == 1
    assert len(contexts) == 1
    assert isinstance(contexts[0]["exception"], ValueError)
    assert contexts[0]["listener"] is broken
    assert contexts[0]["store"] is store


def test_request_flush_outside_loop_raises() -> None:
    store = Store({"v": 0})
    with pytest.raises(SubtreeSchedulerError):
        store.set_partial(v=1)
    assert not store.pending


# ---------------------------------------------------------------------------
# End-to-end scenarios
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_set_partial_scenario() -> None:
    store = Store({"open": False, "total": 0})
    whole: list[None] = []
    totals: list[int] = []
    store.subscribe(lambda: whole.append(None))
    store.subscribe_path("total", totals.append)

    store.set_partial({"open": True})
    await store.wait_flushed()

    assert len(whole) == 1
    assert store.get_state()["open"] is True
    assert totals == []


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_in_place_leaf_mutation_scenario() -> None:
    store = Store({"summary": {"total": 0}})
    summary_calls: list[Any] = []
    total_calls: list[Any] = []
    store.subscribe_path("summary", summary_calls.append)
    store.subscribe_path("summary.total", total_calls.append)

    store.get_state()["summary"]["total"] = 5
    store.request_flush()
    await store.wait_flushed()

    assert summary_calls == []
    assert total_calls == [5]


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_reassigned_equal_subtree_scenario() -> None:
    store = Store({"summary": {"total": 0}})
    summary_calls: list[Any] = []
    total_calls: list[Any] = []
    store.subscribe_path("summary", summary_calls.append)
    store.subscribe_path("summary.total", total_calls.append)

    replacement = {"total": 0}
    store.get_state()["summary"] = replacement
    store.request_flush()
    await store.wait_flushed()

    assert summary_calls == [replacement]
    assert total_calls == []


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_reset_scenario() -> None:
    initial = {"summary": {"total": 0}, "tags": ["a"]}
    store = Store(initial)
    totals: list[int] = []
    store.subscribe_path("summary.total", totals.append)

    store.get_state()["summary"]["total"] = 8
    store.request_flush()
    await store.wait_flushed()

    previous = store.get_state()
    store.reset()
    assert store.get_state() == initial
    assert store.get_state() is not previous
    await store.wait_flushed()

    assert totals == [8, 0]


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_listener_mutation_triggers_second_flush() -> None:
    store = Store({"requested": False, "loaded": False})
    loaded: list[bool] = []

    def load_when_requested() -> None:
        state = store.get_state()
        if state["requested"] and not state["loaded"]:
            store.set_partial(loaded=True)

    store.subscribe(load_when_requested)
    store.subscribe_path("loaded", loaded.append)

    store.set_partial(requested=True)
    await store.wait_flushed()
    await store.wait_flushed()

    assert loaded == [True]
    assert store.flush_count == 2

"""Observable state container with path-scoped subscriptions.

The store owns one mutable state tree. Action code reads it, mutates it in
place (or reassigns subtrees) and calls :meth:`Store.request_flush`. All
requests made before control returns to the scheduler collapse into one
flush that calls every listener once. Path subscribers then filter that
broadcast by re-resolving their path and comparing it with the last value
they saw.
"""

from __future__ import annotations

import asyncio
import copy
import logging
from collections.abc import Callable, Mapping, MutableMapping, Sequence
from typing import Any, Generic, TypeVar

from pysubtree._equality import is_same, is_scalar
from pysubtree._paths import ABSENT, PathLike, resolve_path
from pysubtree._registry import Listener, ListenerRegistry, Subscription
from pysubtree._scheduler import AsyncioScheduler, Scheduler
from pysubtree.config import StoreConfig
from pysubtree.exceptions import SubtreeStateError
from pysubtree.watch import Watch

_logger = logging.getLogger(__name__)

StateT = TypeVar("StateT")


class Store(Generic[StateT]):
    """State container.

    Usage::

        store = Store({"open": False, "total": 0})
        store.subscribe_path("total", lambda total: print("total", total))
        store.set_partial(open=True)
        await store.wait_flushed()

    Parameters
    ----------
    initial : StateT
        Initial state. Deep-copied twice: once into the live state and once
        into the snapshot used by :meth:`reset`.
    config : StoreConfig or None
        Path and scheduling options. Defaults to ``StoreConfig()``.
    scheduler : Scheduler or None
        Where flushes run. Defaults to an :class:`AsyncioScheduler` using
        ``config.flush_delay``.
    """

    def __init__(
        self,
        initial: StateT,
        *,
        config: StoreConfig | None = None,
        scheduler: Scheduler | None = None,
    ) -> None:
        self._config = config if config is not None else StoreConfig()
        self._scheduler: Scheduler = (
            scheduler if scheduler is not None else AsyncioScheduler(delay=self._config.flush_delay)
        )
        self._initial: StateT = copy.deepcopy(initial)
        self._state: StateT = copy.deepcopy(initial)
        self._registry = ListenerRegistry()
        self._pending = False
        self._flush_count = 0
        self._flush_waiters: list[asyncio.Future[None]] = []

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(listeners={len(self._registry)}, "
            f"pending={self._pending}, flushes={self._flush_count})"
        )

    @property
    def config(self) -> StoreConfig:
        return self._config

    @property
    def scheduler(self) -> Scheduler:
        return self._scheduler

    @property
    def pending(self) -> bool:
        """Whether a flush is scheduled and has not run yet."""
        return self._pending

    @property
    def flush_count(self) -> int:
        """Number of flushes executed so far."""
        return self._flush_count

    @property
    def listener_count(self) -> int:
        return len(self._registry)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_state(self) -> StateT:
        """Return the live state (not a copy)."""
        return self._state

    def get_path(self, path: PathLike, default: Any = ABSENT) -> Any:
        """Resolve *path* against the live state.

        Returns *default* (``ABSENT`` unless given) when any segment is
        missing.
        """
        value = resolve_path(
            self._state,
            path,
            delimiter=self._config.path_delimiter,
            allow_attributes=self._config.allow_attribute_paths,
        )
        return default if value is ABSENT else value

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def set_partial(self, fork: Mapping[str, Any] | None = None, /, **values: Any) -> None:
        """Shallow-merge top-level keys into the state, then request a flush.

        Only top-level keys are assigned; a nested dict in *fork* replaces
        the existing subtree wholesale. Values are assigned by reference.
        The root object itself is updated in place.

        *fork* is positional-only: ``set_partial(fork={...})`` assigns a
        top-level ``"fork"`` key, exactly like any other keyword.

        Raises
        ------
        SubtreeStateError
            If the state root cannot take key or attribute assignment.
        """
        if fork is not None and not isinstance(fork, Mapping):
            raise TypeError(f"fork must be a mapping, not {type(fork).__name__}")
        updates: dict[str, Any] = dict(fork or {})
        updates.update(values)

        root: Any = self._state
        if isinstance(root, MutableMapping):
            for key, value in updates.items():
                root[key] = value
        elif is_scalar(root) or isinstance(root, (Mapping, Sequence)):
            raise SubtreeStateError(f"Cannot merge keys into a {type(root).__name__} state")
        else:
            for key, value in updates.items():
                setattr(root, key, value)
        self.request_flush()

    def request_flush(self) -> None:
        """Signal that the state changed.

        Schedules one flush; further calls before it runs are no-ops.
        """
        if self._pending:
            return
        self._scheduler.schedule(self._flush)
        self._pending = True
        _logger.debug("Flush scheduled listeners=%d", len(self._registry))

    def reset(self) -> None:
        """Replace the state with a fresh copy of the initial value, then request a flush."""
        self._state = copy.deepcopy(self._initial)
        self.request_flush()

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Subscription:
        """Call *listener* (with no arguments) on every flush."""
        return self._registry.add(listener)

    def subscribe_path(self, path: PathLike, on_change: Callable[[Any], Any]) -> Subscription:
        """Call ``on_change(value)`` on flushes where the value at *path* changed.

        The baseline is the value at subscription time and is replaced by
        the freshly resolved value after every flush, whether or not it
        changed.
        """
        last = self.get_path(path)

        def _check() -> None:
            nonlocal last
            current = self.get_path(path)
            previous, last = last, current
            if not is_same(previous, current):
                on_change(current)

        return self._registry.add(_check)

    def watch(self, path: PathLike | None = None) -> Watch:
        """Observe *path* (or the whole state when ``None``); see :class:`~pysubtree.watch.Watch`."""
        return Watch(self, path)

    async def wait_flushed(self) -> None:
        """Wait until the pending flush (if any) has run."""
        if not self._pending:
            return
        waiter: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._flush_waiters.append(waiter)
        await waiter

    # ------------------------------------------------------------------
    # Flush
    # ------------------------------------------------------------------

    def _flush(self) -> None:
        # Cleared first so mutations made by listeners schedule a new flush.
        self._pending = False
        self._flush_count += 1
        waiters, self._flush_waiters = self._flush_waiters, []

        entries = self._registry.snapshot()
        _logger.debug("Flush #%d running listeners=%d", self._flush_count, len(entries))
        for token, listener in entries:
            if not self._registry.is_registered(token):
                continue
            try:
                listener()
            except Exception as exc:
                _logger.debug("Store listener failed token=%d", token, exc_info=True)
                self._scheduler.report_exception(
                    "Exception in store listener",
                    exc,
                    {"listener": listener, "store": self},
                )

        for waiter in waiters:
            if not waiter.done():
                waiter.set_result(None)

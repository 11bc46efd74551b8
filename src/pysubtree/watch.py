"""Versioned observers for a store path or the whole state.

A :class:`Watch` is what a rendering layer holds on to: a live value, a
version counter that bumps whenever a re-render would be needed, and an
awaitable for the next change.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from pysubtree._paths import PathLike
    from pysubtree.store import Store


class Watch:
    """Observe one path of a store, or the whole state when *path* is ``None``.

    Whole-state watches change on every flush; path watches only when the
    resolved value differs from the previous one.
    """

    def __init__(self, store: Store[Any], path: PathLike | None = None) -> None:
        self._store = store
        self._path = path
        self._version = 0
        self._waiters: list[asyncio.Event] = []
        if path is None:
            self._subscription = store.subscribe(self._on_change)
        else:
            self._subscription = store.subscribe_path(path, self._on_change)

    def __repr__(self) -> str:
        target = "<state>" if self._path is None else repr(self._path)
        return f"Watch({target}, version={self._version})"

    def __enter__(self) -> Watch:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    @property
    def path(self) -> PathLike | None:
        return self._path

    @property
    def value(self) -> Any:
        """Current value, resolved at access time."""
        if self._path is None:
            return self._store.get_state()
        return self._store.get_path(self._path)

    @property
    def version(self) -> int:
        return self._version

    @property
    def closed(self) -> bool:
        return not self._subscription.active

    def close(self) -> None:
        self._subscription.unsubscribe()
        for waiter in self._waiters:
            waiter.set()
        self._waiters.clear()

    def _on_change(self, *_args: Any) -> None:
        self._version += 1
        waiters, self._waiters = self._waiters, []
        for waiter in waiters:
            waiter.set()

    async def changed(self, timeout: float | None = None) -> bool:
        """Wait for the next change.

        Returns ``False`` on timeout, or when the watch is closed before a
        change arrives.
        """
        if self.closed:
            return False
        baseline = self._version
        waiter = asyncio.Event()
        self._waiters.append(waiter)
        try:
            await asyncio.wait_for(waiter.wait(), timeout)
        except TimeoutError:
            return False
        finally:
            self._waiters = [cand for cand in self._waiters if cand is not waiter]
        return self._version != baseline

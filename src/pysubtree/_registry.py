"""Listener registry backing store subscriptions."""

from __future__ import annotations

import itertools
from collections.abc import Callable
from typing import Any

Listener = Callable[[], Any]


class Subscription:
    """Handle returned by :meth:`ListenerRegistry.add`.

    Calling the handle (or :meth:`unsubscribe`) removes exactly the entry it
    was created for. Repeated calls are no-ops.

    Usage::

        with store.subscribe(render):
            ...
    """

    __slots__ = ("_registry", "_token")

    def __init__(self, registry: ListenerRegistry, token: int) -> None:
        self._registry: ListenerRegistry | None = registry
        self._token = token

    @property
    def token(self) -> int:
        return self._token

    @property
    def active(self) -> bool:
        """Whether the listener is still registered."""
        return self._registry is not None and self._registry.is_registered(self._token)

    def unsubscribe(self) -> None:
        registry = self._registry
        if registry is None:
            return
        self._registry = None
        registry.discard(self._token)

    def __call__(self) -> None:
        self.unsubscribe()

    def __enter__(self) -> Subscription:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.unsubscribe()

    def __repr__(self) -> str:
        state = "active" if self.active else "closed"
        return f"Subscription(token={self._token}, {state})"


class ListenerRegistry:
    """Insertion-ordered set of listener entries.

    Entries are keyed by a private token rather than by the callable, so
    adding the same function twice creates two independent entries.
    """

    def __init__(self) -> None:
        self._entries: dict[int, Listener] = {}
        self._tokens = itertools.count(1)

    def __len__(self) -> int:
        return len(self._entries)

    def add(self, listener: Listener) -> Subscription:
        if not callable(listener):
            raise TypeError(f"listener must be callable, not {type(listener).__name__}")
        token = next(self._tokens)
        self._entries[token] = listener
        return Subscription(self, token)

    def discard(self, token: int) -> None:
        self._entries.pop(token, None)

    def is_registered(self, token: int) -> bool:
        return token in self._entries

    def snapshot(self) -> list[tuple[int, Listener]]:
        """Entries registered right now, safe to iterate while the registry changes."""
        return list(self._entries.items())

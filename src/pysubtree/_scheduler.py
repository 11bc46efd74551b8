"""Deferred-task scheduling for coalesced flushes.

A store never runs its listeners synchronously from a mutation. It hands a
single flush callback to a :class:`Scheduler`, which runs it once the
current call stack has unwound.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from collections.abc import Callable
from typing import Any, Protocol

from pysubtree.exceptions import SubtreeSchedulerError

_logger = logging.getLogger(__name__)


class Scheduler(Protocol):
    """Host capability used by the store to defer and report work."""

    def schedule(self, callback: Callable[[], None]) -> None:
        """Run *callback* later, after the current synchronous work unwinds."""

    def report_exception(self, message: str, exc: BaseException, context: dict[str, Any]) -> None:
        """Hand a listener failure to the host's fault reporting."""


class AsyncioScheduler:
    """Schedule flushes on an asyncio event loop.

    With no explicit *loop* the running loop at scheduling time is used,
    so one scheduler can serve stores touched from different loops.
    Listener failures go to ``loop.call_exception_handler``.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None, *, delay: float = 0.0) -> None:
        if delay < 0:
            raise ValueError("delay must be >= 0")
        self._loop = loop
        self._delay = delay

    @property
    def delay(self) -> float:
        return self._delay

    def _require_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is not None:
            return self._loop
        try:
            return asyncio.get_running_loop()
        except RuntimeError as exc:
            raise SubtreeSchedulerError(
                "No running event loop to schedule a flush on; bind a loop or use ManualScheduler"
            ) from exc

    def schedule(self, callback: Callable[[], None]) -> None:
        loop = self._require_loop()
        if self._delay > 0:
            loop.call_later(self._delay, callback)
        else:
            loop.call_soon(callback)

    def report_exception(self, message: str, exc: BaseException, context: dict[str, Any]) -> None:
        try:
            loop = self._require_loop()
        except SubtreeSchedulerError:
            _logger.error("%s", message, exc_info=exc)
            return
        loop.call_exception_handler({"message": message, "exception": exc, **context})


class ManualScheduler:
    """Queue callbacks until :meth:`run_pending` is called.

    For hosts without an event loop (and for tests that want to step
    flushes explicitly). Callbacks queued while running are picked up by
    the same :meth:`run_pending` call.
    """

    def __init__(self) -> None:
        self._queue: deque[Callable[[], None]] = deque()

    def __len__(self) -> int:
        return len(self._queue)

    def schedule(self, callback: Callable[[], None]) -> None:
        self._queue.append(callback)

    def run_pending(self, limit: int | None = None) -> int:
        """Run queued callbacks and return how many ran.

        *limit* caps the number of callbacks, which keeps a listener that
        always re-mutates the store from spinning forever.
        """
        ran = 0
        while self._queue and (limit is None or ran < limit):
            callback = self._queue.popleft()
            callback()
            ran += 1
        return ran

    def report_exception(self, message: str, exc: BaseException, context: dict[str, Any]) -> None:
        _logger.error("%s (context=%r)", message, context, exc_info=exc)

"""Custom exception hierarchy for pysubtree."""

from __future__ import annotations


class SubtreeError(Exception):
    """Base exception for all pysubtree errors."""


class SubtreeConfigError(SubtreeError):
    """Invalid or missing configuration."""


class SubtreeSchedulerError(SubtreeError):
    """A flush could not be scheduled.

    Raised by :class:`~pysubtree.AsyncioScheduler` when it is not bound to
    a loop and no event loop is running in the calling thread.
    """


class SubtreeStateError(SubtreeError, TypeError):
    """The live state does not support the requested operation.

    ``set_partial`` raises this when the root is neither a mutable mapping
    nor an object that accepts attribute assignment.
    """

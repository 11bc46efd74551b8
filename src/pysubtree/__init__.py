"""pysubtree - Observable state tree with path-scoped, batched notifications."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pysubtree")
except PackageNotFoundError:
    __version__ = "0+local"
from pysubtree._equality import is_same
from pysubtree._paths import ABSENT, parse_path, resolve_path
from pysubtree._registry import ListenerRegistry, Subscription
from pysubtree._scheduler import AsyncioScheduler, ManualScheduler, Scheduler
from pysubtree.config import StoreConfig
from pysubtree.exceptions import (
    SubtreeConfigError,
    SubtreeError,
    SubtreeSchedulerError,
    SubtreeStateError,
)
from pysubtree.store import Store
from pysubtree.watch import Watch

__all__ = [
    "__version__",
    "ABSENT",
    "AsyncioScheduler",
    "ListenerRegistry",
    "ManualScheduler",
    "Scheduler",
    "Store",
    "StoreConfig",
    "Subscription",
    "SubtreeConfigError",
    "SubtreeError",
    "SubtreeSchedulerError",
    "SubtreeStateError",
    "Watch",
    "is_same",
    "parse_path",
    "resolve_path",
]

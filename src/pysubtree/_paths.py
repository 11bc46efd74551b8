"""Path parsing and resolution against a state tree.

Paths are dotted strings (``"summary.total"``), optionally with bracket
indices (``"items[0].name"``), or pre-split segment sequences. Resolution
never raises: a missing key, an out-of-range index or a non-indexable
intermediate value all yield :data:`ABSENT`.
"""

from __future__ import annotations

import dataclasses
import re
from collections.abc import Mapping, Sequence
from typing import Any, Final

from pysubtree._equality import is_scalar


class _Absent:
    """Marker type for a path that does not resolve."""

    __slots__ = ()
    _instance: _Absent | None = None

    def __new__(cls) -> _Absent:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ABSENT"

    def __bool__(self) -> bool:
        return False

    def __copy__(self) -> _Absent:
        return self

    def __deepcopy__(self, _memo: dict[int, Any]) -> _Absent:
        return self

    def __reduce__(self) -> str:
        return "ABSENT"


ABSENT: Final = _Absent()
"""Returned when a path does not exist in the state tree."""

_BRACKET_RE = re.compile(r"\[([^\[\]]*)\]")

PathLike = str | Sequence[str | int]


def parse_path(path: PathLike, delimiter: str = ".") -> tuple[str | int, ...]:
    """Split *path* into segments.

    Bracket indices are normalised into plain segments, so ``"a[0].b"``
    and ``"a.0.b"`` parse identically. An empty string is a single empty
    segment, which only resolves against a mapping holding the ``""`` key.

    >>> parse_path("items[2].name")
    ('items', '2', 'name')
    """
    if isinstance(path, str):
        if "[" in path:
            path = _BRACKET_RE.sub(lambda m: f"{delimiter}{m.group(1)}", path)
            if path.startswith(delimiter):
                path = path[len(delimiter) :]
        return tuple(path.split(delimiter))
    return tuple(path)


def _sequence_index(segment: str | int) -> int | None:
    if isinstance(segment, bool):
        return None
    if isinstance(segment, int):
        return segment if segment >= 0 else None
    if segment.isdigit() and segment.isascii():
        return int(segment)
    return None


def _data_attribute(obj: Any, name: str) -> Any:
    """Read a stored field, never a method or computed property.

    Dataclass fields (slotted or not) and instance ``__dict__`` entries,
    which covers pydantic model fields, resolve to the same object on every
    read. Anything else yields :data:`ABSENT`.
    """
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        if name in {f.name for f in dataclasses.fields(obj)}:
            return getattr(obj, name, ABSENT)
        return ABSENT
    try:
        namespace = vars(obj)
    except TypeError:
        return ABSENT
    return namespace.get(name, ABSENT)


def _step(current: Any, segment: str | int, allow_attributes: bool) -> Any:
    if isinstance(current, Mapping):
        if segment in current:
            return current[segment]
        # "0" and 0 reach each other: string paths and pre-split int segments agree.
        if isinstance(segment, str):
            alternate: str | int | None = _sequence_index(segment)
        else:
            alternate = None if isinstance(segment, bool) else str(segment)
        if alternate is not None and alternate in current:
            return current[alternate]
        return ABSENT

    if is_scalar(current) or current is ABSENT:
        return ABSENT

    if isinstance(current, Sequence):
        index = _sequence_index(segment)
        if index is None or index >= len(current):
            return ABSENT
        return current[index]

    if allow_attributes and isinstance(segment, str) and segment and not segment.startswith("_"):
        return _data_attribute(current, segment)
    return ABSENT


def resolve_path(
    root: Any,
    path: PathLike,
    *,
    delimiter: str = ".",
    allow_attributes: bool = True,
) -> Any:
    """Return the value reachable at *path* from *root*, or :data:`ABSENT`."""
    current = root
    for segment in parse_path(path, delimiter):
        current = _step(current, segment, allow_attributes)
        if current is ABSENT:
            return ABSENT
    return current

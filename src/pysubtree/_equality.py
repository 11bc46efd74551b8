"""Change detection for resolved path values.

Scalars compare by value, everything else by identity. A nested change is
only visible to an ancestor-path observer if the ancestor itself was
reassigned (copy-on-write at the mutation site); there is no structural
fallback.
"""

from __future__ import annotations

import datetime as dt
import enum
import math
import uuid
from decimal import Decimal
from fractions import Fraction
from typing import Any

_SCALAR_TYPES: tuple[type, ...] = (
    type(None),
    bool,
    int,
    float,
    complex,
    str,
    bytes,
    Decimal,
    Fraction,
    enum.Enum,
    dt.date,
    dt.time,
    dt.timedelta,
    uuid.UUID,
)


def is_scalar(value: Any) -> bool:
    """Return ``True`` when *value* is compared by value rather than identity."""
    return isinstance(value, _SCALAR_TYPES)


def is_same(a: Any, b: Any) -> bool:
    """Decide whether two resolved values count as unchanged."""
    if a is b:
        return True
    if not (is_scalar(a) and is_scalar(b)):
        return False
    # Strict equality: False and 0 are different values.
    if isinstance(a, bool) != isinstance(b, bool):
        return False
    if isinstance(a, float) and isinstance(b, float) and math.isnan(a) and math.isnan(b):
        return True
    return bool(a == b)

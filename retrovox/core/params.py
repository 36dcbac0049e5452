"""
Settings-record helpers: partial merges and playback-time clamping.
Records keep raw (even out-of-range) values so they round-trip exactly;
values are clamped only where they reach the audio graph.
"""
import dataclasses
from typing import Any, Mapping, Optional, TypeVar

from retrovox.core.errors import ConfigError

T = TypeVar("T")


def clamp_if_bounds(
    value: float,
    min: Optional[float] = None,
    max: Optional[float] = None,
) -> float:
    """
    Clamp value to [min, max] when bounds are not None.
    Non-numeric values fall back to the lower bound (or 0.0).
    """
    try:
        v = float(value)
    except (TypeError, ValueError):
        return min if min is not None else 0.0
    if v != v:  # NaN
        return min if min is not None else 0.0
    if min is not None and v < min:
        return min
    if max is not None and v > max:
        return max
    return v


def clamp01(value: float) -> float:
    return clamp_if_bounds(value, 0.0, 1.0)


def merge_partial(record: T, partial: Optional[Mapping[str, Any]]) -> T:
    """
    Return a copy of a dataclass record with partial overrides applied.
    Unknown keys raise ConfigError rather than being dropped.
    """
    if not partial:
        return dataclasses.replace(record)
    known = {f.name for f in dataclasses.fields(record)}
    unknown = sorted(set(partial) - known)
    if unknown:
        raise ConfigError(f"Unknown {type(record).__name__} keys: {unknown}")
    return dataclasses.replace(record, **dict(partial))

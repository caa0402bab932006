"""Time and memory unit conversion with readability-driven scale selection."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

import numpy as np

logger = logging.getLogger(__name__)

TIME_UNITS = ("ns", "µs", "ms", "s")
MEMORY_UNITS = ("B", "KB", "MB", "GB", "TB")

BASE_TIME_UNIT = TIME_UNITS[0]
BASE_MEMORY_UNIT = MEMORY_UNITS[0]

SCALE_THRESHOLD = 700.0
SCALE_STEP = 1e-3
RANGE_PRECISION = 9

_TIME_MULTIPLIERS: dict[str, float] = {
    "ns": 1.0,
    "µs": 1e3,
    # Greek small letter mu, as emitted by some harnesses.
    "μs": 1e3,
    "ms": 1e6,
    "s": 1e9,
}

_MEMORY_MULTIPLIERS: dict[str, float] = {
    "B": 1.0,
    "KB": 1e3,
    "MB": 1e6,
    "GB": 1e9,
    "TB": 1e12,
}


class UnrecognizedUnitError(ValueError):
    """Raised when a time or memory unit string is not one we can convert.

    Attributes:
        unit: The offending unit string.
        kind: `"time"` or `"memory"`.
    """

    def __init__(self, unit: str, kind: str) -> None:
        self.unit = unit
        self.kind = kind
        super().__init__(f"Unrecognized {kind} unit: {unit!r}")


def time_multiplier(unit: str | None) -> float:
    """Factor that converts a value in `unit` to nanoseconds."""
    if unit is None:
        return 1.0
    try:
        return _TIME_MULTIPLIERS[unit]
    except KeyError:
        raise UnrecognizedUnitError(unit, "time") from None


def memory_multiplier(unit: str | None) -> float:
    """Factor that converts a value in `unit` to bytes."""
    if unit is None:
        return 1.0
    try:
        return _MEMORY_MULTIPLIERS[unit]
    except KeyError:
        raise UnrecognizedUnitError(unit, "memory") from None


def normalize_time(value: float, unit: str | None) -> float:
    """Convert a duration to nanoseconds.

    Args:
        value: Duration expressed in `unit`. `NaN` propagates.
        unit: One of `TIME_UNITS`, or `None` for values already in nanoseconds.

    Raises:
        UnrecognizedUnitError: If `unit` is not a known time unit.
    """
    return float(value) * time_multiplier(unit)


def normalize_memory(value: float, unit: str | None) -> float:
    """Convert an allocation size to bytes.

    Args:
        value: Size expressed in `unit`. `NaN` propagates.
        unit: One of `MEMORY_UNITS`, or `None` for values already in bytes.

    Raises:
        UnrecognizedUnitError: If `unit` is not a known memory unit.
    """
    return float(value) * memory_multiplier(unit)


@dataclass(frozen=True)
class UnitScale:
    """Display scale chosen for a whole series.

    Attributes:
        divisor: Base-unit values are divided by this to get display values.
        unit: Display unit label.
    """

    divisor: float
    unit: str

    def apply(self, value: float | None) -> float | None:
        if value is None:
            return None
        if self.divisor == 1.0:
            return value
        return value / self.divisor


def _finite_minimum(values: Iterable[float | None]) -> float | None:
    arr = np.asarray(list(values), dtype=float)
    if arr.size == 0:
        return None
    finite = arr[~np.isnan(arr)]
    if finite.size == 0:
        return None
    return float(finite.min())


def select_scale(
    values: Iterable[float | None],
    base_unit: str,
    units: Sequence[str],
    *,
    threshold: float = SCALE_THRESHOLD,
) -> UnitScale:
    """Pick the largest unit that keeps the smallest value readable.

    The running minimum is multiplied by `SCALE_STEP` and the unit advanced
    through `units` for as long as the minimum is at or above `threshold`.
    `None` and `NaN` values do not take part in the minimum.

    Args:
        values: Values expressed in `base_unit`.
        base_unit: Label used when no scaling happens.
        units: Successively larger units, each 1000x the previous one.
        threshold: Smallest minimum that still triggers a step up.
    """
    minimum = _finite_minimum(values)
    if minimum is None:
        return UnitScale(1.0, base_unit)

    divisor = 1.0
    unit = base_unit
    for candidate in units:
        if minimum < threshold:
            break
        minimum *= SCALE_STEP
        divisor *= 1000.0
        unit = candidate
    return UnitScale(divisor, unit)


def select_time_scale(values_ns: Iterable[float | None]) -> UnitScale:
    """Scale selection for durations in nanoseconds."""
    return select_scale(values_ns, BASE_TIME_UNIT, TIME_UNITS[1:])


def select_memory_scale(values_bytes: Iterable[float | None]) -> UnitScale:
    """Scale selection for allocations in bytes."""
    return select_scale(values_bytes, BASE_MEMORY_UNIT, MEMORY_UNITS[1:])


def format_decimal(value: float) -> str:
    """Positional decimal text with at most `RANGE_PRECISION` fractional digits."""
    return np.format_float_positional(
        value,
        precision=RANGE_PRECISION,
        unique=True,
        trim="-",
    )


def scale_range(
    range_text: str | None,
    multiplier: float = 1.0,
    divisor: float = 1.0,
) -> str | None:
    """Rescale an error-range string such as `"± 0.1"`.

    The two-character prefix is kept verbatim and the numeric remainder is
    multiplied by `multiplier`, divided by `divisor` and reformatted.

    Raises:
        ValueError: If the text after the prefix is not a number.
    """
    if not range_text:
        return range_text
    if multiplier == 1.0 and divisor == 1.0:
        return range_text

    prefix = range_text[:2]
    raw = range_text[2:]
    try:
        number = float(raw)
    except ValueError:
        raise ValueError(f"Invalid range value {range_text!r}: expected '<prefix><number>'") from None

    if multiplier != 1.0:
        number *= multiplier
    if divisor != 1.0:
        number /= divisor
    return prefix + format_decimal(number)

from __future__ import annotations

import math

import pytest

from benchdash.units import (
    UnrecognizedUnitError,
    normalize_memory,
    normalize_time,
    scale_range,
    select_memory_scale,
    select_scale,
    select_time_scale,
)


@pytest.mark.parametrize(
    ("value", "unit", "expected"),
    [
        (5.0, None, 5.0),
        (5.0, "ns", 5.0),
        (5.0, "µs", 5_000.0),
        (5.0, "μs", 5_000.0),
        (5.0, "ms", 5_000_000.0),
        (5.0, "s", 5_000_000_000.0),
    ],
)
def test_normalize_time(value: float, unit: str | None, expected: float) -> None:
    assert normalize_time(value, unit) == expected


@pytest.mark.parametrize(
    ("value", "unit", "expected"),
    [
        (3.0, None, 3.0),
        (3.0, "B", 3.0),
        (3.0, "KB", 3_000.0),
        (3.0, "MB", 3_000_000.0),
        (3.0, "GB", 3e9),
        (3.0, "TB", 3e12),
    ],
)
def test_normalize_memory(value: float, unit: str | None, expected: float) -> None:
    assert normalize_memory(value, unit) == expected


def test_unrecognized_time_unit_carries_unit() -> None:
    with pytest.raises(UnrecognizedUnitError, match="years") as exc_info:
        normalize_time(1.0, "years")
    assert exc_info.value.unit == "years"
    assert exc_info.value.kind == "time"
    assert isinstance(exc_info.value, ValueError)


def test_unrecognized_memory_unit_carries_unit() -> None:
    with pytest.raises(UnrecognizedUnitError, match="PB") as exc_info:
        normalize_memory(1.0, "PB")
    assert exc_info.value.kind == "memory"


def test_nan_propagates_through_conversion() -> None:
    assert math.isnan(normalize_time(float("nan"), "ms"))
    assert math.isnan(normalize_memory(float("nan"), "KB"))


class TestScaleSelection:
    def test_small_values_stay_in_base_unit(self) -> None:
        scale = select_time_scale([1.0, 2.0, 3.0])
        assert scale.unit == "ns"
        assert scale.divisor == 1.0

    def test_threshold_is_inclusive(self) -> None:
        assert select_time_scale([700.0, 5_000.0]).unit == "µs"
        assert select_time_scale([699.0, 5_000.0]).unit == "ns"

    def test_steps_until_minimum_is_readable(self) -> None:
        scale = select_time_scale([1_234_000.0, 9e9])
        assert scale.unit == "ms"
        assert scale.divisor == 1e6

    def test_stops_at_last_unit(self) -> None:
        scale = select_time_scale([5e15])
        assert scale.unit == "s"
        assert scale.divisor == 1e9

    def test_nan_and_none_ignored_for_minimum(self) -> None:
        scale = select_time_scale([float("nan"), 800.0, None, 900.0])
        assert scale.unit == "µs"

    def test_no_finite_values_keeps_base_unit(self) -> None:
        assert select_time_scale([float("nan")]).unit == "ns"
        assert select_memory_scale([None, None]).unit == "B"
        assert select_memory_scale([]).unit == "B"

    def test_memory_units(self) -> None:
        assert select_memory_scale([1e9, 1e12]).unit == "GB"
        assert select_memory_scale([300_000.0, 1e6]).unit == "KB"
        assert select_memory_scale([5e15]).unit == "TB"

    def test_custom_threshold(self) -> None:
        scale = select_scale([900.0], "ns", ["µs"], threshold=1_000.0)
        assert scale.unit == "ns"

    def test_apply(self) -> None:
        scale = select_time_scale([2_000.0])
        assert scale.apply(2_000.0) == 2.0
        assert scale.apply(None) is None
        assert math.isnan(scale.apply(float("nan")))


class TestScaleRange:
    def test_prefix_preserved_and_value_scaled(self) -> None:
        assert scale_range("± 0.1", 1.0, 1_000.0) == "± 0.0001"
        assert scale_range("± 17", 1.0, 1_000.0) == "± 0.017"

    def test_round_trip_through_base_unit(self) -> None:
        assert scale_range("± 0.1", 1e6, 1e6) == "± 0.1"

    def test_unscaled_range_is_verbatim(self) -> None:
        assert scale_range("± 14.30") == "± 14.30"

    def test_missing_range_passes_through(self) -> None:
        assert scale_range(None, 1.0, 1_000.0) is None
        assert scale_range("", 1.0, 1_000.0) == ""

    def test_integral_result_has_no_decimal_point(self) -> None:
        assert scale_range("± 2", 1e3, 1.0) == "± 2000"

    def test_invalid_range_raises(self) -> None:
        with pytest.raises(ValueError, match="Invalid range"):
            scale_range("± abc", 1.0, 1_000.0)

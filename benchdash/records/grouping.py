"""Group benchmark runs into per-benchmark series with consistent units."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import replace
from datetime import datetime

from benchdash.raw.payload import BenchmarkItem, Run
from benchdash.units import (
    normalize_memory,
    normalize_time,
    scale_range,
    select_memory_scale,
    select_time_scale,
    time_multiplier,
)

logger = logging.getLogger(__name__)

_COUNTER_SUFFIX = re.compile(r"^(?P<base>.*)\[(?P<counter>\d+)\]$")


def _next_candidate(candidate: str) -> str:
    match = _COUNTER_SUFFIX.match(candidate)
    if match is None:
        return f"{candidate}[1]"
    return f"{match.group('base')}[{int(match.group('counter')) + 1}]"


def resolve_benchmark_name(
    name: str,
    timestamp: datetime,
    occupied: dict[str, set[datetime]],
) -> str:
    """Return a series key for `name` that is free at `timestamp`, and reserve it.

    A taken candidate gets its trailing `[<n>]` counter incremented, or `[1]`
    appended when it has none. Bracketed text that is not an integer is part
    of the base name, so `"Name[Job]"` resolves to `"Name[Job][1]"`.

    Args:
        name: Benchmark name as recorded.
        timestamp: Timestamp of the run the measurement belongs to.
        occupied: Timestamps already taken per series key. Updated in place.
    """
    candidate = name
    while timestamp in occupied.get(candidate, ()):
        candidate = _next_candidate(candidate)
    occupied.setdefault(candidate, set()).add(timestamp)
    if candidate != name:
        logger.debug("Renamed duplicate benchmark %r at %s to %r", name, timestamp, candidate)
    return candidate


def _distinct_by_sha(runs: Iterable[Run]) -> Iterator[Run]:
    seen: set[str] = set()
    for run in runs:
        if run.commit.sha in seen:
            continue
        seen.add(run.commit.sha)
        yield run


def normalize_units(items: Sequence[BenchmarkItem]) -> list[BenchmarkItem]:
    """Rescale a series so every item shares one time unit and one memory unit.

    Values are first converted to nanoseconds and bytes, then scaled up to
    the largest unit that keeps the smallest non-`NaN` value readable. When
    any item has an allocation, every item in the series gets the chosen
    memory unit; items without one keep `bytes_allocated=None`.

    Args:
        items: One benchmark series, in display order.

    Returns:
        New items in the same order.

    Raises:
        UnrecognizedUnitError: If an item carries an unknown time or memory unit.
    """
    if not items:
        return []

    has_allocations = any(item.result.bytes_allocated is not None for item in items)

    time_factors: list[float] = []
    values_ns: list[float] = []
    values_bytes: list[float | None] = []
    for item in items:
        result = item.result
        factor = time_multiplier(result.unit)
        time_factors.append(factor)
        values_ns.append(normalize_time(result.value, result.unit))
        if result.bytes_allocated is None:
            values_bytes.append(None)
        else:
            values_bytes.append(normalize_memory(result.bytes_allocated, result.memory_unit))

    time_scale = select_time_scale(values_ns)
    memory_scale = select_memory_scale(values_bytes) if has_allocations else None
    logger.debug(
        "Scaled series of %d items to %s / %s",
        len(items),
        time_scale.unit,
        memory_scale.unit if memory_scale is not None else None,
    )

    normalized: list[BenchmarkItem] = []
    for item, factor, value_ns, value_bytes in zip(
        items, time_factors, values_ns, values_bytes, strict=True
    ):
        result = replace(
            item.result,
            value=time_scale.apply(value_ns),
            unit=time_scale.unit,
            range=scale_range(item.result.range, factor, time_scale.divisor),
            bytes_allocated=(
                memory_scale.apply(value_bytes) if memory_scale is not None else None
            ),
            memory_unit=memory_scale.unit if memory_scale is not None else None,
        )
        normalized.append(replace(item, result=result))
    return normalized


def group_benchmarks(runs: Iterable[Run]) -> dict[str, list[BenchmarkItem]]:
    """Group runs into one chronologically ordered series per benchmark name.

    Runs sharing a commit SHA are collapsed to the first one seen. A name that
    appears more than once at the same run timestamp is disambiguated with
    `resolve_benchmark_name` rather than dropped. Each series is sorted by run
    timestamp and normalized with `normalize_units`.

    Args:
        runs: Runs in any order.

    Returns:
        Series per (possibly suffixed) benchmark name, keyed in first-seen order.

    Raises:
        UnrecognizedUnitError: If any measurement carries an unknown unit.
    """
    occupied: dict[str, set[datetime]] = {}
    series: dict[str, list[BenchmarkItem]] = {}
    n_runs = 0
    for run in _distinct_by_sha(runs):
        n_runs += 1
        for measurement in run.measurements:
            key = resolve_benchmark_name(measurement.name, run.timestamp, occupied)
            series.setdefault(key, []).append(
                BenchmarkItem(commit=run.commit, result=measurement, timestamp=run.timestamp)
            )

    grouped: dict[str, list[BenchmarkItem]] = {}
    for key, items in series.items():
        ordered = sorted(items, key=lambda item: item.timestamp)
        grouped[key] = normalize_units(ordered)
    logger.debug("Grouped %d distinct runs into %d series", n_runs, len(grouped))
    return grouped

"""Tabular and chart-ready views of grouped benchmark series."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

import pandas as pd

from benchdash.config import DashboardOptions
from benchdash.raw.payload import BenchmarkItem

logger = logging.getLogger(__name__)

DEFAULT_MEMORY_COLOR = "#e34c26"
DEFAULT_TIME_COLOR = "#178600"

SERIES_COLUMNS = [
    "suite",
    "benchmark",
    "timestamp",
    "sha",
    "author",
    "message",
    "commit_url",
    "value",
    "unit",
    "range",
    "bytes_allocated",
    "memory_unit",
]


def series_table(
    items: Sequence[BenchmarkItem],
    *,
    benchmark: str,
    suite: str | None = None,
) -> pd.DataFrame:
    """Flatten one benchmark series into a DataFrame.

    Args:
        items: Normalized series, as returned by `group_benchmarks`.
        benchmark: Series key (benchmark name, possibly suffixed).
        suite: Suite the series belongs to.

    Returns:
        DataFrame with `SERIES_COLUMNS`, one row per item, in series order.
        `NaN` values are kept.
    """
    rows = [
        {
            "suite": suite,
            "benchmark": benchmark,
            "timestamp": item.timestamp,
            "sha": item.commit.sha,
            "author": item.commit.author_username,
            "message": item.commit.message,
            "commit_url": item.commit.url,
            "value": item.result.value,
            "unit": item.result.unit,
            "range": item.result.range,
            "bytes_allocated": item.result.bytes_allocated,
            "memory_unit": item.result.memory_unit,
        }
        for item in items
    ]
    return pd.DataFrame(rows, columns=SERIES_COLUMNS)


def load_series_table(
    grouped: Mapping[str, Mapping[str, Sequence[BenchmarkItem]]],
) -> pd.DataFrame:
    """Long-form table over every series of every suite.

    Args:
        grouped: `{suite: {benchmark: items}}`, as returned by `BenchmarkSuites.group`.

    Returns:
        Concatenated `series_table` frames, or an empty frame with
        `SERIES_COLUMNS` when there are no items.
    """
    frames: list[pd.DataFrame] = []
    for suite, series in grouped.items():
        for benchmark, items in series.items():
            if items:
                frames.append(series_table(items, benchmark=benchmark, suite=suite))

    if not frames:
        return pd.DataFrame(columns=SERIES_COLUMNS)
    out = pd.concat(frames, ignore_index=True)
    logger.info("Built series table with %d rows from %d series", len(out), len(frames))
    return out


def chart_id(suite: str, benchmark: str) -> str:
    """Element ID the dashboard uses for a benchmark's chart."""
    return f"{suite}-{benchmark}-chart"


def chart_payload(
    suite: str,
    benchmark: str,
    items: Sequence[BenchmarkItem],
    *,
    options: DashboardOptions | None = None,
    repository: str | None = None,
) -> dict[str, Any]:
    """Options object handed to the chart renderer for one benchmark.

    Colors come from `options.data_set_colors["Memory"]` and `["Time"]`,
    falling back to the dashboard defaults when unset or empty. When
    `repository` is given, commits recorded without a URL link to
    `options.commit_url(repository, sha)`.
    """
    opts = options if options is not None else DashboardOptions()
    colors = opts.data_set_colors
    dataset = []
    for item in items:
        point = item.to_dict()
        if repository and not item.commit.url:
            point["commit"]["url"] = opts.commit_url(repository, item.commit.sha)
        dataset.append(point)
    return {
        "colors": {
            "memory": colors.get("Memory") or DEFAULT_MEMORY_COLOR,
            "time": colors.get("Time") or DEFAULT_TIME_COLOR,
        },
        "dataset": dataset,
        "errorBars": opts.error_bars,
        "name": benchmark,
        "suiteName": suite,
    }

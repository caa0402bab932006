"""Grouped benchmark series and suite collections."""

from benchdash.records.grouping import (
    group_benchmarks,
    normalize_units,
    resolve_benchmark_name,
)
from benchdash.records.suites import BenchmarkSuites, load_suites

__all__ = [
    "BenchmarkSuites",
    "group_benchmarks",
    "load_suites",
    "normalize_units",
    "resolve_benchmark_name",
]

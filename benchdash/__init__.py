"""Benchmark dashboard data toolkit."""

from benchdash.config import DashboardOptions, load_options
from benchdash.raw.payload import BenchmarkItem, CommitRef, Measurement, Run
from benchdash.records.grouping import group_benchmarks, normalize_units
from benchdash.records.suites import BenchmarkSuites, load_suites
from benchdash.units import UnrecognizedUnitError

__all__ = [
    "BenchmarkItem",
    "BenchmarkSuites",
    "CommitRef",
    "DashboardOptions",
    "Measurement",
    "Run",
    "UnrecognizedUnitError",
    "group_benchmarks",
    "load_options",
    "load_suites",
    "normalize_units",
]

__version__ = "0.1.0"

"""Raw `data.json` document types and codec."""

from benchdash.raw.payload import (
    BenchmarkItem,
    BenchmarkResults,
    CommitRef,
    GitUser,
    Measurement,
    Run,
    dump_benchmark_results,
    parse_benchmark_results,
)

__all__ = [
    "BenchmarkItem",
    "BenchmarkResults",
    "CommitRef",
    "GitUser",
    "Measurement",
    "Run",
    "dump_benchmark_results",
    "parse_benchmark_results",
]

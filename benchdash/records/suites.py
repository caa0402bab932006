"""Benchmark suites for one repository branch, with a fluent collection API."""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Callable, Iterator, Sequence
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from pathlib import Path
from typing import Any

import pandas as pd

from benchdash.config import DashboardOptions
from benchdash.raw.payload import (
    BenchmarkItem,
    BenchmarkResults,
    Run,
    dump_benchmark_results,
    parse_benchmark_results,
)
from benchdash.records.grouping import group_benchmarks
from benchdash.records.series import load_series_table
from benchdash.sources import (
    BenchmarkSource,
    GitHubBenchmarkSource,
    HFBenchmarkSource,
    SourceLike,
    resolve_source,
)

logger = logging.getLogger(__name__)


def _resolve_workers(n_workers: int | None, n_sources: int) -> int:
    if n_sources <= 1:
        return 1
    if n_workers is None or n_workers <= 0:
        cpu = os.cpu_count() or 1
        return min(n_sources, 8, cpu + 4)
    return max(1, int(n_workers))


class BenchmarkSuites:
    """Immutable collection of benchmark suites for one repository branch.

    Wraps a parsed `data.json` document. Filters return new collections;
    `group()` turns the runs of every suite into normalized per-benchmark
    series ready for charting.

    Example:

        suites = BenchmarkSuites.from_file("data.json")
        for name, series in suites.suite("Api").group()["Api"].items():
            print(name, series[-1].result.value, series[-1].result.unit)
    """

    def __init__(
        self,
        results: BenchmarkResults,
        *,
        _source: BenchmarkSource | None = None,
    ) -> None:
        self._results = results
        self._source = _source

    def _derive(self, suites: dict[str, list[Run]]) -> BenchmarkSuites:
        """Create a derived collection preserving source metadata."""
        results = BenchmarkResults(
            last_updated=self._results.last_updated,
            repo_url=self._results.repo_url,
            suites=suites,
        )
        return BenchmarkSuites(results, _source=self._source)

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> BenchmarkSuites:
        """Construct from a parsed `data.json` document."""
        return cls(parse_benchmark_results(payload))

    @classmethod
    def from_json(cls, text: str) -> BenchmarkSuites:
        """Construct from `data.json` text."""
        return cls.from_dict(json.loads(text))

    @classmethod
    def from_file(cls, path: str | Path) -> BenchmarkSuites:
        """Load a local `data.json` file."""
        return cls.from_source(path)

    @classmethod
    def from_source(cls, source: SourceLike) -> BenchmarkSuites:
        """Load from any benchmark source.

        Raises:
            FileNotFoundError: If the source has no benchmark data published.
        """
        resolved = resolve_source(source)
        payload = resolved.load()
        if payload is None:
            raise FileNotFoundError(f"No benchmark data found for {resolved!r}")
        instance = cls(parse_benchmark_results(payload), _source=resolved)
        logger.info(
            "BenchmarkSuites.from_source: %d suites, %d runs",
            len(instance),
            instance.num_runs,
        )
        return instance

    @classmethod
    def from_github(
        cls,
        repository: str,
        branch: str,
        *,
        options: DashboardOptions | None = None,
        is_public: bool = True,
        token: str | None = None,
    ) -> BenchmarkSuites:
        """Load the benchmark data published for a repository branch on GitHub.

        Args:
            repository: Benchmarked repository (data directory name).
            branch: Branch of the data repository to read.
            options: Dashboard options naming the data repository.
            is_public: Whether the data repository is public.
            token: GitHub token; defaults to the `GITHUB_TOKEN` environment variable.
        """
        source = GitHubBenchmarkSource(
            repository=repository,
            branch=branch,
            options=options if options is not None else DashboardOptions(),
            is_public=is_public,
            token=token,
        )
        return cls.from_source(source)

    @classmethod
    def from_hf(
        cls,
        repo_id: str,
        *,
        filename: str = "data.json",
        revision: str | None = None,
    ) -> BenchmarkSuites:
        """Load a benchmark data file mirrored to a Hugging Face dataset repository.

        Respects the ``HF_HOME`` environment variable for cache location.
        """
        return cls.from_source(HFBenchmarkSource(repo_id, filename=filename, revision=revision))

    @property
    def results(self) -> BenchmarkResults:
        return self._results

    @property
    def names(self) -> list[str]:
        """Suite names in file order."""
        return list(self._results.suites)

    @property
    def last_updated(self) -> datetime:
        return self._results.last_updated

    @property
    def repo_url(self) -> str | None:
        return self._results.repo_url

    @property
    def num_runs(self) -> int:
        return sum(len(runs) for runs in self._results.suites.values())

    @property
    def current_commit(self) -> str | None:
        """SHA of the latest run, when every non-empty suite ends on the same commit."""
        latest = {runs[-1].commit.sha for runs in self._results.suites.values() if runs}
        if len(latest) == 1:
            return next(iter(latest))
        return None

    def suite(self, *names: str) -> BenchmarkSuites:
        """Filter to the given suites, keeping file order."""
        wanted = set(names)
        return self._derive(
            {name: runs for name, runs in self._results.suites.items() if name in wanted}
        )

    def where(self, predicate: Callable[[Run], bool]) -> BenchmarkSuites:
        """Filter runs in every suite by an arbitrary predicate.

        Args:
            predicate: Function that takes a `Run` and returns True to keep it.
        """
        return self._derive(
            {
                name: [r for r in runs if predicate(r)]
                for name, runs in self._results.suites.items()
            }
        )

    def since(self, start: datetime) -> BenchmarkSuites:
        """Filter to runs recorded at or after `start`."""
        return self.where(lambda r: r.timestamp >= start)

    def group(self) -> dict[str, dict[str, list[BenchmarkItem]]]:
        """Group every suite into normalized per-benchmark series.

        Returns:
            `{suite: {benchmark: items}}`. Each call builds a fresh result.

        Raises:
            UnrecognizedUnitError: If any result carries an unknown unit.
        """
        grouped = {name: group_benchmarks(runs) for name, runs in self._results.suites.items()}
        logger.info(
            "Grouped %d suites into %d series",
            len(grouped),
            sum(len(series) for series in grouped.values()),
        )
        return grouped

    def __iter__(self) -> Iterator[str]:
        return iter(self._results.suites)

    def __len__(self) -> int:
        return len(self._results.suites)

    def __getitem__(self, name: str) -> list[Run]:
        return self._results.suites[name]

    def __contains__(self, name: object) -> bool:
        return name in self._results.suites

    def __bool__(self) -> bool:
        return len(self._results.suites) > 0

    def __repr__(self) -> str:
        return f"BenchmarkSuites({len(self)} suites, {self.num_runs} runs)"

    def to_dataframe(self) -> pd.DataFrame:
        """Long-form DataFrame with one row per normalized series item."""
        return load_series_table(self.group())

    def to_dict(self) -> dict[str, Any]:
        """Encode back to the `data.json` document shape."""
        return dump_benchmark_results(self._results)


def load_suites(
    sources: Sequence[SourceLike],
    *,
    n_workers: int | None = None,
) -> list[BenchmarkSuites]:
    """Load several sources concurrently, preserving input order.

    Args:
        sources: Benchmark sources, or paths to local `data.json` files.
        n_workers: Number of fetch threads (default: auto).

    Raises:
        FileNotFoundError: If any source has no benchmark data published.
    """
    if not sources:
        return []
    workers = _resolve_workers(n_workers, len(sources))
    logger.info("Loading %d benchmark sources with %d workers", len(sources), workers)
    if workers <= 1:
        return [BenchmarkSuites.from_source(s) for s in sources]
    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = [pool.submit(BenchmarkSuites.from_source, s) for s in sources]
        return [future.result() for future in futures]

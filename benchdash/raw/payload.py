"""Record types and JSON codec for published benchmark `data.json` files."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

import pandas as pd

logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def from_unix_ms(raw: object) -> datetime:
    """Convert a Unix-epoch millisecond integer to an aware UTC datetime."""
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        raise ValueError(f"Expected Unix milliseconds, got {raw!r}")
    return _EPOCH + timedelta(milliseconds=int(raw))


def to_unix_ms(value: datetime) -> int:
    """Inverse of `from_unix_ms`."""
    return (value - _EPOCH) // timedelta(milliseconds=1)


def _parse_iso(raw: object) -> datetime | None:
    if raw is None or raw == "":
        return None
    ts = pd.Timestamp(str(raw))
    if ts.tzinfo is None:
        ts = ts.tz_localize("UTC")
    return ts.to_pydatetime()


def _optional_float(raw: object) -> float | None:
    if raw is None:
        return None
    return float(raw)  # type: ignore[arg-type]


def _json_number(value: float | None) -> float | None:
    if value is None or math.isnan(value):
        return None
    return value


@dataclass(frozen=True)
class GitUser:
    """Git identity as recorded by the benchmark workflow."""

    username: str


@dataclass(frozen=True)
class CommitRef:
    """Commit a benchmark run was recorded against.

    Attributes:
        sha: Full commit SHA. Commits are the same for grouping when SHAs match.
        message: Commit message.
        url: Web URL of the commit.
        author: Commit author.
        committer: Commit committer.
        timestamp: Commit time, when the workflow recorded one.
    """

    sha: str
    message: str = ""
    url: str = ""
    author: GitUser = field(default_factory=lambda: GitUser(""))
    committer: GitUser = field(default_factory=lambda: GitUser(""))
    timestamp: datetime | None = None

    @property
    def author_username(self) -> str:
        return self.author.username

    @property
    def short_sha(self) -> str:
        return self.sha[:7]

    def to_dict(self) -> dict[str, Any]:
        return {
            "author": {"username": self.author.username},
            "committer": {"username": self.committer.username},
            "sha": self.sha,
            "message": self.message,
            "timestamp": self.timestamp.isoformat() if self.timestamp is not None else None,
            "url": self.url,
        }


@dataclass(frozen=True)
class Measurement:
    """A single named benchmark result.

    Attributes:
        name: Benchmark name as recorded by the harness.
        value: Measured duration in `unit`. May be `NaN`.
        unit: Time unit (`"ns"`, `"µs"`, `"ms"`, `"s"`) or `None`.
        range: Error range text such as `"± 0.1"`, in the same unit as `value`.
        bytes_allocated: Memory allocated per operation, in `memory_unit`. May be `NaN`.
        memory_unit: Memory unit (`"B"`, `"KB"`, ...) or `None`.
    """

    name: str
    value: float
    unit: str | None = None
    range: str | None = None
    bytes_allocated: float | None = None
    memory_unit: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Chart-contract dict with camelCase keys.

        `NaN` `value` and `bytes_allocated` are written as `None`. Decoding
        reads a `null` value back as `NaN` but a `null` allocation as `None`,
        i.e. as no allocation recorded.
        """
        return {
            "name": self.name,
            "value": _json_number(self.value),
            "range": self.range,
            "unit": self.unit,
            "bytesAllocated": _json_number(self.bytes_allocated),
            "memoryUnit": self.memory_unit,
        }


@dataclass(frozen=True)
class Run:
    """One recorded benchmark execution for a commit."""

    timestamp: datetime
    commit: CommitRef
    measurements: tuple[Measurement, ...] = ()


@dataclass(frozen=True)
class BenchmarkItem:
    """One point of a grouped benchmark series."""

    commit: CommitRef
    result: Measurement
    timestamp: datetime

    def to_dict(self) -> dict[str, Any]:
        return {"commit": self.commit.to_dict(), "result": self.result.to_dict()}


@dataclass(frozen=True)
class BenchmarkResults:
    """Benchmark data for one repository branch.

    Attributes:
        last_updated: When the data file was last written.
        repo_url: URL of the benchmarked repository, if recorded.
        suites: Runs per suite name, in file order.
    """

    last_updated: datetime
    repo_url: str | None
    suites: dict[str, list[Run]]


def _parse_user(raw: object) -> GitUser:
    if isinstance(raw, dict):
        return GitUser(str(raw.get("username") or ""))
    return GitUser("")


def _parse_commit(raw: object, where: str) -> CommitRef:
    if not isinstance(raw, dict):
        raise ValueError(f"{where}.commit is missing or not an object")
    sha = raw.get("sha")
    if not isinstance(sha, str) or not sha:
        raise ValueError(f"{where}.commit.sha is missing")
    return CommitRef(
        sha=sha,
        message=str(raw.get("message") or ""),
        url=str(raw.get("url") or ""),
        author=_parse_user(raw.get("author")),
        committer=_parse_user(raw.get("committer")),
        timestamp=_parse_iso(raw.get("timestamp")),
    )


def _parse_measurement(raw: object, where: str) -> Measurement:
    if not isinstance(raw, dict):
        raise ValueError(f"{where} is not an object")
    name = raw.get("name")
    if not isinstance(name, str):
        raise ValueError(f"{where}.name is missing")
    if "value" not in raw:
        raise ValueError(f"{where}.value is missing")
    value = raw["value"]
    return Measurement(
        name=name,
        value=float("nan") if value is None else float(value),
        unit=raw.get("unit"),
        range=raw.get("range"),
        bytes_allocated=_optional_float(raw.get("bytesAllocated")),
        memory_unit=raw.get("memoryUnit"),
    )


def _parse_run(raw: object, where: str) -> Run:
    if not isinstance(raw, dict):
        raise ValueError(f"{where} is not an object")
    benches = raw.get("benches") or []
    if not isinstance(benches, list):
        raise ValueError(f"{where}.benches is not a list")
    return Run(
        timestamp=from_unix_ms(raw.get("date")),
        commit=_parse_commit(raw.get("commit"), where),
        measurements=tuple(
            _parse_measurement(b, f"{where}.benches[{i}]") for i, b in enumerate(benches)
        ),
    )


def parse_benchmark_results(payload: dict[str, Any]) -> BenchmarkResults:
    """Decode a parsed `data.json` document.

    Args:
        payload: Parsed JSON object with `lastUpdated`, `repoUrl` and `entries`.

    Raises:
        ValueError: If the document does not have the expected structure.
    """
    if not isinstance(payload, dict):
        raise ValueError("Benchmark data is not a JSON object")
    entries = payload.get("entries")
    if not isinstance(entries, dict):
        raise ValueError("entries is missing or not an object")

    suites: dict[str, list[Run]] = {}
    for suite, raw_runs in entries.items():
        if not isinstance(raw_runs, list):
            raise ValueError(f"entries[{suite!r}] is not a list")
        suites[suite] = [
            _parse_run(r, f"entries[{suite!r}][{i}]") for i, r in enumerate(raw_runs)
        ]

    last_updated = payload.get("lastUpdated")
    results = BenchmarkResults(
        last_updated=from_unix_ms(last_updated) if last_updated is not None else _EPOCH,
        repo_url=payload.get("repoUrl"),
        suites=suites,
    )
    logger.debug(
        "Parsed %d suites with %d runs",
        len(suites),
        sum(len(runs) for runs in suites.values()),
    )
    return results


def dump_benchmark_results(results: BenchmarkResults) -> dict[str, Any]:
    """Encode `results` back to the `data.json` document shape.

    A `NaN` allocation does not survive the round trip: it is written as
    `null` and decodes to `None`, so a series whose only allocations were
    `NaN` loses its memory unit when regrouped.
    """
    return {
        "lastUpdated": to_unix_ms(results.last_updated),
        "repoUrl": results.repo_url,
        "entries": {
            suite: [
                {
                    "commit": run.commit.to_dict(),
                    "date": to_unix_ms(run.timestamp),
                    "benches": [m.to_dict() for m in run.measurements],
                }
                for run in runs
            ]
            for suite, runs in results.suites.items()
        },
    }

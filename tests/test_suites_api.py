from __future__ import annotations

import json
import math
from pathlib import Path

import pandas as pd

from benchdash.config import DashboardOptions
from benchdash.raw.payload import from_unix_ms
from benchdash.records.series import (
    DEFAULT_MEMORY_COLOR,
    DEFAULT_TIME_COLOR,
    SERIES_COLUMNS,
    chart_id,
    chart_payload,
    series_table,
)
from benchdash.records.suites import BenchmarkSuites, _resolve_workers, load_suites


def _write_json(path: Path, payload: dict[str, object]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload))


def _run(sha: str, date: int, benches: list[dict[str, object]]) -> dict[str, object]:
    return {
        "commit": {
            "author": {"username": "octocat"},
            "committer": {"username": "octocat"},
            "sha": sha,
            "message": f"Commit {sha}",
            "timestamp": None,
            "url": f"https://github.com/octocat/api/commit/{sha}",
        },
        "date": date,
        "benches": benches,
    }


def _document() -> dict[str, object]:
    return {
        "lastUpdated": 3000,
        "repoUrl": "https://github.com/octocat/api",
        "entries": {
            "Api": [
                _run(
                    "a1",
                    1000,
                    [
                        {"name": "Get", "value": 1500, "unit": "ns"},
                        {
                            "name": "Post",
                            "value": 2000,
                            "unit": "ns",
                            "bytesAllocated": 1024,
                            "memoryUnit": "B",
                        },
                    ],
                ),
                _run(
                    "a2",
                    2000,
                    [
                        {"name": "Get", "value": 1600, "unit": "ns"},
                        {
                            "name": "Post",
                            "value": 2100,
                            "unit": "ns",
                            "bytesAllocated": 2048,
                            "memoryUnit": "B",
                        },
                    ],
                ),
            ],
            "Website": [
                _run("a2", 2500, [{"name": "Root", "value": 5, "unit": "ms", "range": "± 0.5"}]),
            ],
        },
    }


def test_from_dict_and_properties() -> None:
    suites = BenchmarkSuites.from_dict(_document())

    assert suites.names == ["Api", "Website"]
    assert list(suites) == ["Api", "Website"]
    assert len(suites) == 2
    assert suites.num_runs == 3
    assert suites.repo_url == "https://github.com/octocat/api"
    assert suites.last_updated == from_unix_ms(3000)
    assert "Api" in suites
    assert "Missing" not in suites
    assert len(suites["Api"]) == 2
    assert suites.current_commit == "a2"


def test_from_json_and_from_file(tmp_path: Path) -> None:
    path = tmp_path / "api" / "data.json"
    _write_json(path, _document())

    from_text = BenchmarkSuites.from_json(path.read_text())
    from_file = BenchmarkSuites.from_file(path)

    assert from_text.results == from_file.results


def test_suite_filter_keeps_file_order() -> None:
    suites = BenchmarkSuites.from_dict(_document())

    assert suites.suite("Website", "Api").names == ["Api", "Website"]
    assert suites.suite("Website").names == ["Website"]
    assert not suites.suite("Missing")


def test_since_and_where_filters() -> None:
    suites = BenchmarkSuites.from_dict(_document())

    recent = suites.since(from_unix_ms(1500))
    assert recent.num_runs == 2
    assert [r.commit.sha for r in recent["Api"]] == ["a2"]

    first = suites.where(lambda r: r.commit.sha == "a1")
    assert first.num_runs == 1
    assert first.names == ["Api", "Website"]
    assert first["Website"] == []
    assert first.current_commit == "a1"

    # Filters do not modify the original collection.
    assert suites.num_runs == 3


def test_current_commit_differs_between_suites() -> None:
    doc = _document()
    doc["entries"]["Website"][0]["commit"]["sha"] = "b9"  # type: ignore[index]

    assert BenchmarkSuites.from_dict(doc).current_commit is None


def test_group_normalizes_every_suite() -> None:
    grouped = BenchmarkSuites.from_dict(_document()).group()

    assert list(grouped) == ["Api", "Website"]
    assert list(grouped["Api"]) == ["Get", "Post"]

    get = grouped["Api"]["Get"]
    assert [i.result.unit for i in get] == ["µs", "µs"]
    assert [i.result.value for i in get] == [1.5, 1.6]
    assert [i.commit.sha for i in get] == ["a1", "a2"]

    post = grouped["Api"]["Post"]
    assert [i.result.value for i in post] == [2, 2.1]
    assert [i.result.memory_unit for i in post] == ["KB", "KB"]
    assert [i.result.bytes_allocated for i in post] == [1.024, 2.048]

    (root,) = grouped["Website"]["Root"]
    assert root.result.unit == "ms"
    assert root.result.value == 5
    assert root.result.range == "± 0.5"


def test_to_dataframe() -> None:
    df = BenchmarkSuites.from_dict(_document()).to_dataframe()

    assert list(df.columns) == SERIES_COLUMNS
    assert len(df) == 5
    assert list(df["suite"].unique()) == ["Api", "Website"]
    post = df[df["benchmark"] == "Post"]
    assert post["memory_unit"].tolist() == ["KB", "KB"]
    assert post["author"].tolist() == ["octocat", "octocat"]


def test_empty_collection() -> None:
    suites = BenchmarkSuites.from_dict({"entries": {}})

    assert not suites
    assert suites.current_commit is None
    assert suites.group() == {}
    df = suites.to_dataframe()
    assert df.empty
    assert list(df.columns) == SERIES_COLUMNS
    assert repr(suites) == "BenchmarkSuites(0 suites, 0 runs)"


def test_repr() -> None:
    assert repr(BenchmarkSuites.from_dict(_document())) == "BenchmarkSuites(2 suites, 3 runs)"


def test_to_dict_round_trips() -> None:
    suites = BenchmarkSuites.from_dict(_document())

    again = BenchmarkSuites.from_dict(suites.to_dict())

    assert again.results == suites.results


def test_series_table_keeps_nan() -> None:
    doc = _document()
    doc["entries"]["Api"][0]["benches"][0]["value"] = None  # type: ignore[index]
    series = BenchmarkSuites.from_dict(doc).group()["Api"]["Get"]

    df = series_table(series, benchmark="Get", suite="Api")

    assert len(df) == 2
    assert math.isnan(df["value"].iloc[0])
    assert df["value"].iloc[1] == 1.6
    assert isinstance(df["timestamp"].iloc[0], pd.Timestamp)


def test_chart_id() -> None:
    assert chart_id("Api", "Get") == "Api-Get-chart"


def test_chart_payload_defaults() -> None:
    series = BenchmarkSuites.from_dict(_document()).group()["Api"]["Post"]

    payload = chart_payload("Api", "Post", series)

    assert payload["colors"] == {"memory": DEFAULT_MEMORY_COLOR, "time": DEFAULT_TIME_COLOR}
    assert payload["errorBars"] is True
    assert payload["name"] == "Post"
    assert payload["suiteName"] == "Api"
    assert len(payload["dataset"]) == 2
    first = payload["dataset"][0]
    assert first["commit"]["sha"] == "a1"
    assert first["result"] == {
        "name": "Post",
        "value": 2.0,
        "range": None,
        "unit": "µs",
        "bytesAllocated": 1.024,
        "memoryUnit": "KB",
    }
    json.dumps(payload)


def test_chart_payload_uses_configured_colors() -> None:
    options = DashboardOptions(data_set_colors={"Time": "#000000", "Memory": ""}, error_bars=False)

    payload = chart_payload("Api", "Get", [], options=options)

    assert payload["colors"] == {"memory": DEFAULT_MEMORY_COLOR, "time": "#000000"}
    assert payload["errorBars"] is False
    assert payload["dataset"] == []


def test_chart_payload_links_commits_without_url() -> None:
    doc = _document()
    doc["entries"]["Api"][0]["commit"]["url"] = ""  # type: ignore[index]
    series = BenchmarkSuites.from_dict(doc).group()["Api"]["Get"]
    options = DashboardOptions(repository_owner="octocat")

    payload = chart_payload("Api", "Get", series, options=options, repository="api")

    urls = [p["commit"]["url"] for p in payload["dataset"]]
    assert urls == [
        "https://github.com/octocat/api/commits/a1",
        "https://github.com/octocat/api/commit/a2",
    ]
    assert series[0].commit.url == ""


def test_chart_payload_emits_null_for_nan() -> None:
    doc = _document()
    doc["entries"]["Api"][1]["benches"][0]["value"] = None  # type: ignore[index]
    series = BenchmarkSuites.from_dict(doc).group()["Api"]["Get"]

    payload = chart_payload("Api", "Get", series)

    assert payload["dataset"][1]["result"]["value"] is None
    assert "NaN" not in json.dumps(payload)


def test_load_suites_preserves_order(tmp_path: Path) -> None:
    paths = []
    for name, sha in [("api", "a1"), ("website", "w1"), ("docs", "d1")]:
        doc = {"entries": {"Suite": [_run(sha, 1000, [{"name": "X", "value": 1}])]}}
        path = tmp_path / name / "data.json"
        _write_json(path, doc)
        paths.append(path)

    loaded = load_suites(paths, n_workers=2)

    assert [s.current_commit for s in loaded] == ["a1", "w1", "d1"]
    assert load_suites([]) == []


def test_resolve_workers() -> None:
    assert _resolve_workers(None, 1) == 1
    assert _resolve_workers(4, 0) == 1
    assert _resolve_workers(3, 10) == 3
    assert 1 <= _resolve_workers(None, 10) <= 8

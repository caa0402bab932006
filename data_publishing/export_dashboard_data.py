"""Export grouped, unit-normalized benchmark series for the dashboard.

Reads benchmark ``data.json`` files (local, from the GitHub data repository
named in the dashboard config, or from a Hugging Face dataset mirror of it)
and writes, per source:

- ``series.parquet``: long-form table, one row per benchmark point.
- ``charts.json``: one chart payload per benchmark, keyed by chart ID.
- ``index.json``: dashboard name, branch link, latest commit and chart IDs.
- ``data.json``: the raw document, re-encoded.

Local inputs named like the configured data file (``website/data.json``) are
exported under their directory name; other files under their stem
(``runs/main.json`` -> ``main``).

Usage::

    python data_publishing/export_dashboard_data.py \\
      --config dashboard.yaml \\
      --repository website --repository api \\
      --branch main \\
      --out-dir /path/to/output

    python data_publishing/export_dashboard_data.py \\
      --input /path/to/data.json --out-dir /path/to/output
"""

from __future__ import annotations

import argparse
import json
import logging
from dataclasses import dataclass
from pathlib import Path

from benchdash.config import DashboardOptions, load_options
from benchdash.records.series import chart_id, chart_payload
from benchdash.records.suites import BenchmarkSuites, load_suites
from benchdash.sources import (
    GitHubBenchmarkSource,
    HFBenchmarkSource,
    LocalBenchmarkSource,
    SourceLike,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Target:
    name: str
    source: SourceLike
    repository: str | None = None
    branch: str | None = None


def _input_name(path: Path, options: DashboardOptions) -> str:
    if path.name == options.benchmark_file_name and path.parent.name:
        return path.parent.name
    return path.stem


def _export(
    suites: BenchmarkSuites,
    out_dir: Path,
    options: DashboardOptions,
    target: _Target,
) -> None:
    """Write the series table, chart payloads, index and raw data for one source."""
    out_dir.mkdir(parents=True, exist_ok=True)

    grouped = suites.group()
    charts = {
        chart_id(suite, name): chart_payload(
            suite, name, items, options=options, repository=target.repository
        )
        for suite, series in grouped.items()
        for name, items in series.items()
    }
    (out_dir / "charts.json").write_text(json.dumps(charts, ensure_ascii=False, indent=2))
    logger.info("Wrote %s (%d charts)", out_dir / "charts.json", len(charts))

    df = suites.to_dataframe()
    df.to_parquet(out_dir / "series.parquet", index=False)
    logger.info("Wrote %s (%d rows)", out_dir / "series.parquet", len(df))

    index = {
        "brandName": options.brand_name,
        "repository": target.repository or target.name,
        "branch": target.branch,
        "branchUrl": (
            options.branch_url(target.repository, target.branch)
            if target.repository and target.branch
            else None
        ),
        "currentCommit": suites.current_commit,
        "lastUpdated": suites.last_updated.isoformat(),
        "suites": suites.names,
        "charts": list(charts),
    }
    (out_dir / "index.json").write_text(json.dumps(index, ensure_ascii=False, indent=2))
    logger.info("Wrote %s", out_dir / "index.json")

    (out_dir / "data.json").write_text(json.dumps(suites.to_dict(), ensure_ascii=False))
    logger.info("Wrote %s", out_dir / "data.json")


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Export grouped benchmark series and chart payloads"
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Dashboard config YAML (data repository owner/name, colors, ...)",
    )
    parser.add_argument(
        "--input",
        type=str,
        action="append",
        dest="inputs",
        default=[],
        help="Local data.json file (can be specified multiple times)",
    )
    parser.add_argument(
        "--repository",
        type=str,
        action="append",
        dest="repositories",
        default=[],
        help="Benchmarked repository to fetch (default: all in config)",
    )
    parser.add_argument(
        "--branch",
        type=str,
        default="main",
        help="Branch of the data repository to read",
    )
    parser.add_argument(
        "--private",
        action="store_true",
        help="Read through the GitHub contents API (needs GITHUB_TOKEN)",
    )
    parser.add_argument(
        "--hf-dataset",
        type=str,
        default=None,
        help="Read repositories from this HF dataset mirror instead of GitHub",
    )
    parser.add_argument(
        "--out-dir",
        type=str,
        required=True,
        help="Output directory",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    options = load_options(args.config) if args.config else DashboardOptions()
    out_dir = Path(args.out_dir)

    targets: list[_Target] = []
    for raw in args.inputs:
        path = Path(raw)
        targets.append(_Target(_input_name(path, options), LocalBenchmarkSource(path)))

    repositories = args.repositories or ([] if args.inputs else list(options.repositories))
    for repository in repositories:
        if args.hf_dataset:
            source: SourceLike = HFBenchmarkSource(
                args.hf_dataset,
                filename=f"{repository}/{options.benchmark_file_name}",
            )
            targets.append(_Target(repository, source, repository=repository))
            continue
        source = GitHubBenchmarkSource(
            repository=repository,
            branch=args.branch,
            options=options,
            is_public=not args.private,
        )
        targets.append(_Target(repository, source, repository=repository, branch=args.branch))

    if not targets:
        parser.error("Nothing to export: pass --input or --repository, or list repositories in --config")

    names = [t.name for t in targets]
    clashes = sorted({n for n in names if names.count(n) > 1})
    if clashes:
        parser.error(f"Several sources would be exported to the same directory: {', '.join(clashes)}")

    logger.info("Exporting %d benchmark sources to %s", len(targets), out_dir)
    loaded = load_suites([t.source for t in targets])
    for target, suites in zip(targets, loaded, strict=True):
        logger.info("%s: %r", target.name, suites)
        _export(suites, out_dir / target.name, options, target)

    logger.info("Done. Output directory: %s", out_dir)


if __name__ == "__main__":
    main()

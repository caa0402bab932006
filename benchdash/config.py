"""Dashboard configuration loaded from YAML."""

from __future__ import annotations

import dataclasses
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
from urllib.parse import quote, urlsplit

import yaml

logger = logging.getLogger(__name__)

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")

# Dashboard settings for sign-in and rendering, accepted in config files but unused here.
_IGNORED_OPTIONS = frozenset(
    {"brand_icons", "github_client_id", "github_token_url", "image_format", "token_scopes"}
)


def _snake_case(key: str) -> str:
    # Acronyms as a whole: "GitHubApiUrl" -> "github_api_url".
    key = key.replace("GitHub", "Github").replace("gitHub", "github")
    return _CAMEL_BOUNDARY.sub("_", key).lower()


@dataclass(frozen=True)
class DashboardOptions:
    """Settings shared by the data sources and chart payloads.

    Attributes:
        benchmark_file_name: Name of the benchmark data file in each repository directory.
        brand_name: Display name of the dashboard.
        data_set_colors: Chart colors keyed by data set (`"Time"`, `"Memory"`).
        error_bars: Whether charts draw error bars from result ranges.
        github_api_url: Base URL of the GitHub REST API.
        github_api_version: Value for the `X-GitHub-Api-Version` header.
        github_data_url: Base URL for raw file content of public repositories.
        github_server_url: Base URL of the GitHub web UI.
        repository_owner: Owner of the repository that stores benchmark data.
        repository_name: Name of the repository that stores benchmark data.
        repositories: Benchmarked repositories, one data directory each.
    """

    benchmark_file_name: str = "data.json"
    brand_name: str = "Benchmarks"
    data_set_colors: dict[str, str] = field(default_factory=dict)
    error_bars: bool = True
    github_api_url: str = "https://api.github.com"
    github_api_version: str = "2022-11-28"
    github_data_url: str = "https://raw.githubusercontent.com"
    github_server_url: str = "https://github.com"
    repository_owner: str = ""
    repository_name: str = ""
    repositories: tuple[str, ...] = ()

    @property
    def is_github_enterprise(self) -> bool:
        """Whether the API URL points somewhere other than github.com."""
        return urlsplit(self.github_api_url).hostname != "api.github.com"

    @property
    def github_instance(self) -> str:
        return "GitHub Enterprise" if self.is_github_enterprise else "GitHub"

    def branch_url(self, repository: str, branch: str) -> str:
        """Web URL of `branch` in a benchmarked repository."""
        base = self.github_server_url.rstrip("/")
        return f"{base}/{self.repository_owner}/{repository}/tree/{quote(branch)}"

    def commit_url(self, repository: str, sha: str) -> str:
        """Web URL of the commit history at `sha` in a benchmarked repository."""
        base = self.github_server_url.rstrip("/")
        return f"{base}/{self.repository_owner}/{repository}/commits/{sha}"

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> DashboardOptions:
        """Build options from a mapping with snake_case or camelCase keys.

        Dashboard settings this package does not use, such as the sign-in
        settings, are skipped.

        Raises:
            ValueError: If a key does not name a known option.
        """
        known = {f.name for f in dataclasses.fields(cls)}
        kw: dict[str, Any] = {}
        for key, value in raw.items():
            name = _snake_case(str(key))
            if name in _IGNORED_OPTIONS:
                logger.debug("Ignoring dashboard option %r", key)
                continue
            if name not in known:
                raise ValueError(f"Unknown dashboard option: {key!r}")
            kw[name] = value
        if "repositories" in kw:
            kw["repositories"] = tuple(kw["repositories"] or ())
        if "data_set_colors" in kw:
            kw["data_set_colors"] = dict(kw["data_set_colors"] or {})
        return cls(**kw)


def load_options(path: str | Path) -> DashboardOptions:
    """Load `DashboardOptions` from a YAML file.

    An empty file yields the defaults.

    Raises:
        FileNotFoundError: If `path` does not exist.
        ValueError: If the document is not a mapping or has unknown keys.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Dashboard config does not exist: {p}")
    raw = yaml.safe_load(p.read_text())
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ValueError(f"Invalid dashboard config (not a mapping): {p}")
    options = DashboardOptions.from_dict(raw)
    logger.debug("Loaded dashboard options from %s", p)
    return options

"""Benchmark data sources: local files, GitHub, and Hugging Face-hosted mirrors."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

import requests
from huggingface_hub import hf_hub_download
from huggingface_hub.errors import GatedRepoError, RepositoryNotFoundError

from benchdash.config import DashboardOptions

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT_SECONDS = 30


def _handle_hf_access_error(exc: RepositoryNotFoundError, repo_id: str) -> None:
    """Re-raise HF Hub access errors with actionable guidance.

    Args:
        exc: The original exception from `huggingface_hub`.
        repo_id: The HF dataset repository ID that was being accessed.

    Raises:
        GatedRepoError: With instructions to request access on the dataset page.
        RepositoryNotFoundError: With instructions to set `HF_TOKEN`.
    """
    dataset_url = f"https://huggingface.co/datasets/{repo_id}"
    if isinstance(exc, GatedRepoError):
        raise GatedRepoError(
            f"Access denied to gated dataset '{repo_id}'.\n"
            f"Visit {dataset_url} and request access, then retry.",
            response=exc.response,
        ) from None
    raise RepositoryNotFoundError(
        f"Could not access dataset '{repo_id}' (HTTP {exc.response.status_code}).\n"
        f"Check the repository ID, or set HF_TOKEN if the dataset is private.",
        response=exc.response,
    ) from None


def _handle_github_access_error(
    exc: requests.HTTPError,
    url: str,
    has_token: bool,
    instance: str = "GitHub",
) -> None:
    """Re-raise GitHub 401/403 responses with actionable guidance.

    Raises:
        requests.HTTPError: Always; the original error for other status codes.
    """
    response = exc.response
    status = response.status_code if response is not None else None
    if status not in (401, 403):
        raise exc
    if has_token:
        raise requests.HTTPError(
            f"{instance} rejected the request for {url} (HTTP {status}).\n"
            f"Your GITHUB_TOKEN is set but was refused. Check that it is valid and "
            f"has access to the benchmark data repository.",
            response=response,
        ) from None
    raise requests.HTTPError(
        f"{instance} rejected the request for {url} (HTTP {status}).\n"
        f"Anonymous requests may be rate-limited or lack access to private repositories.\n"
        f"Set the GITHUB_TOKEN environment variable to a personal access token and retry.",
        response=response,
    ) from None


class BenchmarkSource(Protocol):
    """Common interface for benchmark data sources."""

    def load(self) -> dict[str, Any] | None:
        """Return the parsed `data.json` document, or None if none is published."""
        ...


@dataclass(frozen=True)
class LocalBenchmarkSource:
    """Benchmark data file on the local filesystem."""

    path: Path

    def load(self) -> dict[str, Any]:
        p = Path(self.path)
        if not p.exists():
            raise FileNotFoundError(f"Benchmark data file does not exist: {p}")
        return json.loads(p.read_text(encoding="utf-8"))


@dataclass(frozen=True)
class GitHubBenchmarkSource:
    """Benchmark data published to a GitHub repository branch.

    Public repositories on github.com are read from the raw content host.
    Private repositories and GitHub Enterprise go through the contents API
    and need a token, taken from `token` or the `GITHUB_TOKEN` environment
    variable.
    """

    repository: str
    branch: str
    options: DashboardOptions = field(default_factory=DashboardOptions)
    is_public: bool = True
    token: str | None = None

    @property
    def uses_api(self) -> bool:
        return self.options.is_github_enterprise or not self.is_public

    def request_url(self) -> str:
        opts = self.options
        file_name = opts.benchmark_file_name
        if self.uses_api:
            base = opts.github_api_url.rstrip("/")
            return (
                f"{base}/repos/{opts.repository_owner}/{opts.repository_name}"
                f"/contents/{self.repository}/{file_name}?ref={self.branch}"
            )
        base = opts.github_data_url.rstrip("/")
        return (
            f"{base}/{opts.repository_owner}/{opts.repository_name}"
            f"/{self.branch}/{self.repository}/{file_name}"
        )

    def _resolve_token(self) -> str | None:
        return self.token or os.environ.get("GITHUB_TOKEN") or None

    def request_headers(self) -> dict[str, str]:
        if not self.uses_api:
            return {}
        headers = {
            "Accept": "application/vnd.github.v3.raw",
            "X-GitHub-Api-Version": self.options.github_api_version,
        }
        token = self._resolve_token()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def load(self) -> dict[str, Any] | None:
        url = self.request_url()
        logger.debug("Fetching benchmark data from %s", url)
        response = requests.get(url, headers=self.request_headers(), timeout=REQUEST_TIMEOUT_SECONDS)
        if response.status_code == 404:
            logger.info("No benchmark data for %s@%s", self.repository, self.branch)
            return None
        try:
            response.raise_for_status()
        except requests.HTTPError as e:
            _handle_github_access_error(
                e, url, self._resolve_token() is not None, self.options.github_instance
            )
        return response.json()


@dataclass(frozen=True)
class HFBenchmarkSource:
    """Benchmark data mirrored to a Hugging Face dataset repository.

    The export script writes one ``<repository>/data.json`` per benchmarked
    repository; a dataset repo holding that tree serves readers without
    access to the GitHub data repository. Files are cached under ``HF_HOME``.
    """

    repo_id: str
    filename: str = "data.json"
    revision: str | None = None

    def load(self) -> dict[str, Any]:
        logger.debug("Fetching %s from HF dataset %s", self.filename, self.repo_id)
        try:
            local = hf_hub_download(
                repo_id=self.repo_id,
                filename=self.filename,
                repo_type="dataset",
                revision=self.revision,
            )
        except RepositoryNotFoundError as e:
            _handle_hf_access_error(e, self.repo_id)
        return json.loads(Path(local).read_text(encoding="utf-8"))


SourceLike = BenchmarkSource | str | Path


def resolve_source(source: SourceLike) -> BenchmarkSource:
    """Resolve a source-like input into a benchmark source."""
    if isinstance(source, (str, Path)):
        resolved: BenchmarkSource = LocalBenchmarkSource(Path(source))
    else:
        resolved = source
    logger.debug("Resolved benchmark source: %r", resolved)
    return resolved

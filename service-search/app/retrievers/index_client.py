"""HTTP client for the remote module index.

The index exposes three static resources:

- ``<base>/repos.json``: JSON array of ``{"path": ...}`` repository objects
- ``<base>/<repo>/full.txt``: newline-delimited module names
- ``<base>/<repo>/<module>.py``: module source

Every failure (transport error, non-2xx status, malformed JSON) surfaces as
``ModuleIndexError``. There is no retry and no partial result.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, List, Optional
from urllib.parse import quote

import httpx
import structlog

from libs.common.metrics import MetricsCollector

logger = structlog.get_logger("search_service.index_client")


class ModuleIndexError(Exception):
    """Raised when the module index cannot be read."""

    def __init__(self, message: str, url: str):
        super().__init__(message)
        self.url = url


@dataclass(frozen=True)
class Repository:
    """A remote collection of modules."""
    path: str


@dataclass(frozen=True)
class Candidate:
    """One module name listed by a repository."""
    repo_path: str
    module_name: str


def _encode_path(path: str) -> str:
    """Percent-encode each segment of a slash-separated path."""
    segments = [segment for segment in path.strip("/").split("/") if segment]
    return "/".join(quote(segment, safe="") for segment in segments)


def parse_listing(repo: Repository, text: str) -> List[Candidate]:
    """Turn a ``full.txt`` body into candidates, skipping blank lines."""
    candidates = []
    for line in text.replace("\r", "").split("\n"):
        name = line.strip()
        if name:
            candidates.append(Candidate(repo_path=repo.path, module_name=name))
    return candidates


class ModuleIndexClient:
    """Reads repositories, listings and module sources from the index.

    Parameters
    - base_url: Index root, e.g. ``https://modules.fajox.one``
    - http_client: Shared ``httpx.AsyncClient``; owned by the caller
    - metrics_collector: Optional collector for per-request counters
    """

    def __init__(
        self,
        base_url: str,
        http_client: httpx.AsyncClient,
        metrics_collector: Optional[MetricsCollector] = None
    ):
        self.base_url = base_url.rstrip("/")
        self.http_client = http_client
        self.metrics_collector = metrics_collector

    def repos_url(self) -> str:
        return f"{self.base_url}/repos.json"

    def listing_url(self, repo_path: str) -> str:
        return f"{self.base_url}/{_encode_path(repo_path)}/full.txt"

    def module_url(self, repo_path: str, module_name: str) -> str:
        return f"{self.base_url}/{_encode_path(repo_path)}/{quote(module_name, safe='')}.py"

    async def _get(self, url: str, kind: str) -> httpx.Response:
        try:
            response = await self.http_client.get(url)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            self._record(kind, "error")
            logger.error("Module index returned an error status", url=url, status=e.response.status_code)
            raise ModuleIndexError(f"{url} returned HTTP {e.response.status_code}", url) from e
        except httpx.HTTPError as e:
            self._record(kind, "error")
            logger.error("Module index request failed", url=url, error=str(e))
            raise ModuleIndexError(f"Request to {url} failed: {e}", url) from e

        self._record(kind, "ok")
        return response

    def _record(self, kind: str, outcome: str) -> None:
        if self.metrics_collector is not None:
            self.metrics_collector.record_upstream_fetch(kind, outcome)

    async def fetch_repositories(self) -> List[Repository]:
        """Fetch the repository list."""
        url = self.repos_url()
        response = await self._get(url, "repos")

        try:
            payload: Any = response.json()
        except ValueError as e:
            raise ModuleIndexError(f"Invalid JSON from {url}: {e}", url) from e

        if not isinstance(payload, list):
            raise ModuleIndexError(f"Expected a JSON array from {url}", url)

        repositories = []
        for entry in payload:
            if not isinstance(entry, dict) or not isinstance(entry.get("path"), str):
                raise ModuleIndexError(f"Malformed repository entry from {url}: {entry!r}", url)
            repositories.append(Repository(path=entry["path"]))

        logger.debug("Repositories fetched", count=len(repositories))
        return repositories

    async def fetch_listing(self, repo: Repository) -> List[Candidate]:
        """Fetch the module names published by one repository."""
        response = await self._get(self.listing_url(repo.path), "listing")
        return parse_listing(repo, response.text)

    async def fetch_candidates(self, repositories: List[Repository]) -> List[Candidate]:
        """Fetch all listings concurrently and flatten them in repository order."""
        listings = await asyncio.gather(*(self.fetch_listing(repo) for repo in repositories))
        candidates = [candidate for listing in listings for candidate in listing]

        logger.debug(
            "Listings fetched",
            repository_count=len(repositories),
            candidate_count=len(candidates)
        )
        return candidates

    async def fetch_module_source(self, repo_path: str, module_name: str) -> str:
        """Fetch the raw source of one module."""
        response = await self._get(self.module_url(repo_path, module_name), "module")
        return response.text

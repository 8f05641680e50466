"""Search manager for module search.

Collects candidates from the module index, scores them against the query,
fetches and parses metadata for every match, and returns the ranked top
results. A request either completes fully or fails; there is no partial
result and no retry.
"""

import asyncio
import time
from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional

import httpx
import structlog
from opentelemetry import trace

from libs.common.config import SearchConfig
from libs.common.logging import log_performance
from libs.common.metrics import MetricsCollector
from libs.common.tracing import TracingContext
from ..metadata.extractor import create_metadata_parser
from ..ranking.similarity import create_result_ranker, ratio
from ..retrievers.index_client import Candidate, ModuleIndexClient

logger = structlog.get_logger("search_service.search_manager")


@dataclass
class ScoredModule:
    """A matching module enriched with its metadata."""
    module: str
    ratio: float
    name: str
    description: Optional[str]
    banner: Optional[str]
    developer: Optional[str]
    link: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a plain dictionary."""
        return asdict(self)


class SearchManager:
    """Manages module search operations.

    Responsibilities
    - Own the HTTP client used to reach the module index
    - Score candidates and enrich matches with scraped metadata
    - Order and truncate results
    """

    def __init__(
        self,
        config: SearchConfig,
        http_client: Optional[httpx.AsyncClient] = None,
        metrics_collector: Optional[MetricsCollector] = None
    ):
        """Construct a search manager.

        Parameters
        - config: ``SearchConfig`` with the index URL and fetch limits
        - http_client: Pre-built client (tests); created in ``initialize`` otherwise
        - metrics_collector: Optional collector for upstream fetch counters
        """
        self.config = config
        self.http_client = http_client
        self.metrics_collector = metrics_collector
        self._owns_client = http_client is None
        self.index_client: Optional[ModuleIndexClient] = None

        self.parse_metadata = create_metadata_parser(config.ml_search_metadata_parser)
        self.result_ranker = create_result_ranker()
        self.max_concurrent_fetches = max(1, config.ml_search_max_concurrent_fetches)
        self.tracer = trace.get_tracer("search_service.search_manager")

        if self.http_client is not None:
            self._build_index_client()

    def _build_index_client(self) -> None:
        self.index_client = ModuleIndexClient(
            self.config.ml_modules_index_url,
            self.http_client,
            self.metrics_collector
        )

    async def initialize(self):
        """Create the HTTP client if one was not injected."""
        if self.http_client is None:
            self.http_client = httpx.AsyncClient(
                timeout=self.config.ml_http_timeout,
                follow_redirects=True
            )
            self._owns_client = True
            self._build_index_client()

        logger.info(
            "Search manager initialized successfully",
            index_url=self.config.ml_modules_index_url,
            metadata_parser=self.config.ml_search_metadata_parser
        )

    async def cleanup(self):
        """Close the HTTP client if this manager created it."""
        if self.http_client is not None and self._owns_client:
            await self.http_client.aclose()
            self.http_client = None
            self.index_client = None
        logger.info("Search manager cleaned up")

    async def health_check(self) -> bool:
        """The manager is healthy once its index client exists."""
        return self.index_client is not None

    async def search(self, query: str, limit: int) -> List[ScoredModule]:
        """Search the module index.

        Parameters
        - query: Non-empty query string
        - limit: Maximum number of results; negative drops that many from the end

        Returns
        - Matching modules, best first
        """
        if self.index_client is None:
            raise RuntimeError("Search manager is not initialized")

        start_time = time.time()

        with TracingContext(self.tracer, "module_search.query", query=query, limit=limit):
            repositories = await self.index_client.fetch_repositories()
            candidates = await self.index_client.fetch_candidates(repositories)

            scored = [(candidate, ratio(query, candidate.module_name)) for candidate in candidates]
            matches = [(candidate, score) for candidate, score in scored if score > 0]

            semaphore = asyncio.Semaphore(self.max_concurrent_fetches)
            results = await asyncio.gather(
                *(self._enrich(candidate, score, semaphore) for candidate, score in matches)
            )

            best = self.result_ranker.rank(results, limit)

        log_performance(
            "module_search",
            (time.time() - start_time) * 1000,
            query=query,
            repository_count=len(repositories),
            candidate_count=len(candidates),
            match_count=len(matches),
            results_count=len(best)
        )

        return best

    async def _enrich(
        self,
        candidate: Candidate,
        score: float,
        semaphore: asyncio.Semaphore
    ) -> ScoredModule:
        """Fetch and parse one matching module's metadata."""
        link = self.index_client.module_url(candidate.repo_path, candidate.module_name)

        async with semaphore:
            source = await self.index_client.fetch_module_source(
                candidate.repo_path,
                candidate.module_name
            )

        info = self.parse_metadata(source)

        return ScoredModule(
            module=candidate.module_name,
            ratio=score,
            name=info.name or candidate.module_name,
            description=info.description,
            banner=info.banner,
            developer=info.developer,
            link=link
        )

"""API routes for the module search service."""

import re
import time
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
import structlog

from libs.common.metrics import MetricsCollector
from ..search.search_manager import SearchManager

logger = structlog.get_logger("search_service.api")

router = APIRouter()

MISSING_QUERY_ERROR = "Query parameter 'q' is required"
INTERNAL_ERROR = "Internal Server Error"

_LEADING_INT = re.compile(r"\s*([+-]?)(0[xX][0-9a-fA-F]+|[0-9]+)")


class ScoredResult(BaseModel):
    """One ranked module."""
    module: str = Field(..., description="Module name as listed by its repository")
    ratio: float = Field(..., description="Prefix similarity to the query")
    name: str = Field(..., description="Display name, falls back to the module name")
    description: Optional[str] = Field(None, description="Module description")
    banner: Optional[str] = Field(None, description="Banner image URL")
    developer: Optional[str] = Field(None, description="Module developer")
    link: str = Field(..., description="URL of the module source")


class SearchResponse(BaseModel):
    """Response model for the search endpoint."""
    results: List[ScoredResult] = Field(..., description="Ranked results")


class ErrorResponse(BaseModel):
    """Error body for failed searches."""
    error: str
    details: Optional[str] = None


def parse_limit(raw: Optional[str], default: int) -> int:
    """Parse ``limit`` from its leading integer.

    Trailing characters are ignored (``"7abc"`` is 7) and a ``0x`` prefix
    reads hexadecimal. Missing, unparsable or zero values fall back to
    ``default``. Negative values are kept and drop that many results from the
    end of the ranking.
    """
    if raw is None:
        return default
    match = _LEADING_INT.match(raw)
    if match is None:
        return default
    sign, digits = match.groups()
    value = int(digits, 0) if digits[:2].lower() == "0x" else int(digits)
    if sign == "-":
        value = -value
    return value or default


def get_search_manager(request: Request) -> SearchManager:
    """Get search manager from application state."""
    return request.app.state.search_manager


def get_metrics(request: Request) -> MetricsCollector:
    """Get metrics collector from application state."""
    return request.app.state.metrics_collector


@router.get(
    "/search",
    response_model=SearchResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}}
)
async def search(
    q: Optional[str] = Query(None, description="Search query"),
    limit: Optional[str] = Query(None, description="Maximum number of results"),
    search_manager: SearchManager = Depends(get_search_manager),
    metrics_collector: MetricsCollector = Depends(get_metrics)
):
    """Search modules by prefix similarity to ``q``."""
    if not q:
        return JSONResponse(status_code=400, content={"error": MISSING_QUERY_ERROR})

    max_results = parse_limit(limit, search_manager.config.ml_search_default_limit)
    start_time = time.time()

    try:
        results = await search_manager.search(query=q, limit=max_results)
    except Exception as e:
        metrics_collector.record_search("error", time.time() - start_time)
        logger.error("Search failed", query=q, error=str(e))
        return JSONResponse(
            status_code=500,
            content={"error": INTERNAL_ERROR, "details": str(e)}
        )

    duration = time.time() - start_time
    latency_ms = duration * 1000
    metrics_collector.record_search("ok", duration, len(results))

    logger.info(
        "Search completed",
        query=q,
        limit=max_results,
        results_count=len(results),
        latency_ms=latency_ms
    )

    return SearchResponse(results=[ScoredResult(**result.to_dict()) for result in results])

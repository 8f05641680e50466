"""Module search service main application."""

import time
from contextlib import asynccontextmanager
from typing import Optional

import httpx
import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import structlog

from .api.routes import INTERNAL_ERROR, router as api_router
from .search.search_manager import SearchManager
from libs.common.config import SearchConfig
from libs.common.logging import configure_logging
from libs.common.metrics import get_metrics_collector
from libs.common.tracing import configure_tracing

logger = structlog.get_logger("search_service")

SERVICE_NAME = "search-service"


def create_app(
    config: Optional[SearchConfig] = None,
    http_client: Optional[httpx.AsyncClient] = None
) -> FastAPI:
    """Build the FastAPI application.

    Parameters
    - config: Settings; read from the environment when omitted
    - http_client: Client used to reach the module index; created on startup
      when omitted
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager."""
        settings = config or SearchConfig()
        configure_logging(SERVICE_NAME, settings.ml_log_level, settings.ml_log_format)

        if settings.ml_tracing_enabled:
            tracer = configure_tracing(settings.ml_otel_service_name, settings.ml_otel_exporter, app=app)
            if tracer:
                logger.info("OpenTelemetry tracing enabled", exporter=settings.ml_otel_exporter)
            else:
                logger.warning("Tracing initialization failed")
        else:
            tracer = None
            logger.info("OpenTelemetry tracing disabled via configuration")
        app.state.tracer = tracer

        logger.info("Starting search service")

        app.state.metrics_collector = get_metrics_collector(SERVICE_NAME)
        app.state.search_manager = SearchManager(
            settings,
            http_client=http_client,
            metrics_collector=app.state.metrics_collector
        )
        await app.state.search_manager.initialize()

        logger.info("Search service started successfully")

        yield

        logger.info("Shutting down search service")
        await app.state.search_manager.cleanup()
        logger.info("Search service shutdown complete")

    app = FastAPI(
        title="Module Search Service",
        description="Prefix-similarity search over a remote plugin module index",
        version="0.1.0",
        lifespan=lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router, prefix="/api")

    @app.middleware("http")
    async def add_process_time_header(request: Request, call_next):
        """Add processing time header to responses."""
        start_time = time.time()
        response = await call_next(request)
        response.headers["X-Process-Time"] = str(time.time() - start_time)
        return response

    @app.middleware("http")
    async def metrics_middleware(request: Request, call_next):
        """Collect metrics for HTTP requests and turn escaped errors into 500s."""
        start_time = time.time()

        try:
            response = await call_next(request)
            status_code = response.status_code
        except Exception as e:
            logger.error("Unhandled request error", path=request.url.path, error=str(e))
            status_code = 500
            response = JSONResponse(
                status_code=500,
                content={"error": INTERNAL_ERROR, "details": str(e)}
            )

        collector = getattr(request.app.state, "metrics_collector", None)
        if collector is not None:
            collector.record_http_request(
                method=request.method,
                endpoint=request.url.path,
                status=status_code,
                duration=time.time() - start_time
            )

        return response

    @app.get("/health")
    async def health_check(request: Request):
        """Health check endpoint."""
        search_manager = getattr(request.app.state, "search_manager", None)
        healthy = search_manager is not None and await search_manager.health_check()

        if healthy:
            return {"status": "healthy", "service": SERVICE_NAME}
        return JSONResponse(
            status_code=503,
            content={"status": "unhealthy", "service": SERVICE_NAME}
        )

    @app.get("/metrics")
    async def metrics(request: Request):
        """Prometheus metrics endpoint."""
        collector = getattr(request.app.state, "metrics_collector", None)
        if collector is not None:
            return Response(content=collector.get_metrics(), media_type="text/plain")
        return Response(content="# No metrics available\n", media_type="text/plain")

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "service": SERVICE_NAME,
            "version": "0.1.0",
            "status": "running",
            "endpoints": {
                "health": "/health",
                "metrics": "/metrics",
                "search": "/api/search"
            }
        }

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=SearchConfig().ml_search_port,
        log_level="info"
    )

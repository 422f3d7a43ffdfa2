"""
FastAPI service exposing place suggestions.

Endpoints:
  GET  /suggestions  - Ranked place suggestions for a query and/or coordinate
  GET  /health       - Catalog/index status
  POST /reload       - Rebuild the indexes from the configured catalog source
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from geo_suggest.config import get_settings
from geo_suggest.exceptions import CatalogLoadError, CatalogNotReady, RateLimitExceeded
from geo_suggest.models import HealthResponse, ReloadResponse, SuggestionsResponse
from geo_suggest.ratelimit import FixedWindowRateLimiter, enforce_rate_limit
from geo_suggest.scheduler import start_scheduler, stop_scheduler
from geo_suggest.suggest import SuggestionService

logger = logging.getLogger(__name__)


# ── Lifespan ──────────────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: build indexes unless already published, start reloads. Shutdown: stop reloads."""
    service: SuggestionService = app.state.service
    logger.info("Starting up API server...")
    if service.engine is None:
        try:
            await asyncio.to_thread(service.reload)
        except CatalogLoadError as e:
            # Keep serving; /suggestions answers 503 until a reload succeeds
            logger.error("Initial catalog load failed: %s", e)
    start_scheduler(service)
    yield
    stop_scheduler()
    logger.info("API server shut down.")


# ── Dependencies ──────────────────────────────────────────────────────

def get_service(request: Request) -> SuggestionService:
    return request.app.state.service


router = APIRouter()


# ══════════════════════════════════════════════════════════════════════
# ENDPOINTS
# ══════════════════════════════════════════════════════════════════════

@router.get(
    "/suggestions",
    response_model=SuggestionsResponse,
    dependencies=[Depends(enforce_rate_limit)],
)
def suggestions(
    q: Optional[str] = Query(None, max_length=200, description="Place name or prefix"),
    latitude: Optional[float] = Query(None, ge=-90, le=90, description="Caller latitude"),
    longitude: Optional[float] = Query(None, ge=-180, le=180, description="Caller longitude"),
    service: SuggestionService = Depends(get_service),
):
    """
    Suggest places for autocomplete.

    Text only ranks by name match and population, coordinates only rank by
    distance, and both together rank name matches by distance.
    """
    if (latitude is None) != (longitude is None):
        raise HTTPException(400, "latitude and longitude must be provided together")

    results = service.get_suggestions(q, latitude, longitude)
    return SuggestionsResponse(suggestions=results)


@router.get("/health", response_model=HealthResponse)
def health(service: SuggestionService = Depends(get_service)):
    status = "ok" if service.is_ready else "not_ready"
    return HealthResponse(status=status, catalog=service.stats())


@router.post("/reload", response_model=ReloadResponse)
def reload(service: SuggestionService = Depends(get_service)):
    try:
        service.reload()
    except CatalogLoadError as e:
        logger.error("Catalog reload failed: %s", e)
        raise HTTPException(503, str(e)) from e
    return ReloadResponse(catalog=service.stats())


# ── App factory ───────────────────────────────────────────────────────

def create_app(
    service: Optional[SuggestionService] = None,
    limiter: Optional[FixedWindowRateLimiter] = None,
) -> FastAPI:
    app = FastAPI(
        title="Geo Suggest API",
        description="Autocomplete suggestions for place names",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.service = service or SuggestionService()
    app.state.limiter = limiter or FixedWindowRateLimiter(get_settings().rate_limit)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    @app.exception_handler(CatalogNotReady)
    async def catalog_not_ready(request: Request, exc: CatalogNotReady):
        return JSONResponse(status_code=503, content={"detail": exc.detail})

    @app.exception_handler(RateLimitExceeded)
    async def rate_limited(request: Request, exc: RateLimitExceeded):
        return JSONResponse(
            status_code=429,
            content={"detail": str(exc)},
            headers={"Retry-After": str(exc.retry_after)},
        )

    app.include_router(router)
    return app


app = create_app()

"""
Sports News Live Scores API.

Serves stored matches over HTTP, pushes match changes over a WebSocket, and
hosts the live sync scheduler in the same process.
"""
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

# .env may set ENVIRONMENT, which picks the settings file, so load it first
from dotenv import load_dotenv
load_dotenv(dotenv_path=Path(__file__).parent.parent / ".env")

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from prometheus_fastapi_instrumentator import Instrumentator

from app.core.config import settings
from app.core.database import init_db
from app.core.logging import configure_logging, get_logger
from app.core import metrics
from app.core.scheduler import get_scheduler, start_scheduler, stop_scheduler
from app.api.routes import live_scores, sync
from app.services.live_scores import LiveSyncConfig, MatchRoomManager

configure_logging(level=settings.LOG_LEVEL, json_output=settings.LOG_JSON)
logger = get_logger(__name__)


def client_address(request: Request) -> str:
    """Rate limit key: first X-Forwarded-For hop behind a proxy, else the peer address."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return get_remote_address(request)


limiter = Limiter(
    key_func=client_address,
    default_limits=["60/minute"],
    enabled=settings.RATE_LIMIT_ENABLED
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION} ({settings.ENVIRONMENT})")
    init_db()

    if settings.SCHEDULER_ENABLED:
        # The room manager is the notifier the sync loop publishes to
        await start_scheduler(LiveSyncConfig.from_settings(settings), app.state.room_manager)
    else:
        logger.info("Live sync scheduler disabled (SCHEDULER_ENABLED=false)")
    metrics.update_scheduler_metrics()

    yield

    await stop_scheduler()
    metrics.update_scheduler_metrics()
    logger.info("Shutdown complete")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Live scores for cricket, football, basketball and tennis, kept in sync with external providers",
    lifespan=lifespan
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.state.room_manager = MatchRoomManager()

Instrumentator().instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

app.include_router(live_scores.router, prefix="/api/v1")
app.include_router(sync.router, prefix="/api/v1")


@app.get("/")
@limiter.limit("60/minute")
async def root(request: Request):
    """Service description and entry points."""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running",
        "sports": ["cricket", "football", "basketball", "tennis"],
        "endpoints": {
            "api_version": "v1",
            "live_scores": "/api/v1/live-scores",
            "live_scores_ws": "/api/v1/live-scores/ws",
            "sync": "/api/v1/sync/status",
            "docs": "/docs",
            "health": "/health",
            "metrics": "/metrics"
        }
    }


@app.get("/health")
@limiter.limit("120/minute")
async def health_check(request: Request):
    scheduler = get_scheduler()
    metrics.update_scheduler_metrics()
    return {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "scheduler": "running" if scheduler and scheduler.running else "stopped",
        "subscribed_topics": len(app.state.room_manager.topics())
    }


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "detail": str(exc)}
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG
    )

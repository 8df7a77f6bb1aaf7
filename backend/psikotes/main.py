from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
import logging
import time

from .core.config import settings
from .core.database import create_db_and_tables
from .core.cache import cache
from .api.v1.api import api_router
from .api.deps import get_quick_session_store
from .middleware.performance import PerformanceMiddleware
from .middleware.rate_limiting import RateLimitMiddleware
from .middleware.timezone import TimezoneMiddleware


logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Psikotes AI API",
    description="Latihan psikotes dengan soal buatan AI, Tes Koran, dan duel 1v1",
    version="1.0.0",
    docs_url=f"{settings.api_root}/docs" if settings.environment == "development" else None,
    redoc_url=None,
    openapi_url=f"{settings.api_root}/openapi.json",
)

app.add_middleware(GZipMiddleware, minimum_size=1000)

app.add_middleware(TimezoneMiddleware)

app.add_middleware(
    PerformanceMiddleware,
    slow_request_threshold=settings.slow_request_threshold
)

app.add_middleware(RateLimitMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"detail": "Payload tidak valid.", "errors": jsonable_encoder(exc.errors())}
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Global exception on {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "message": "Terjadi kesalahan pada server. Coba lagi nanti.",
            "request_id": getattr(request.state, 'request_id', 'unknown')
        }
    )


@app.on_event("startup")
async def startup_event():
    logger.info(f"Starting Psikotes AI API under '{settings.api_root}'...")

    await create_db_and_tables()
    logger.info("Database initialized")

    cache_health = await cache.ahealth_check()
    if cache_health:
        logger.info(f"Cache connection established ({cache.backend})")
    else:
        logger.warning("Cache connection failed - running without cache")

    if not settings.api_keys:
        logger.warning("No Gemini API key configured - question generation will answer 503")

    logger.info("Psikotes AI API startup completed")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Shutting down Psikotes AI API...")
    await get_quick_session_store().flush()
    await cache.close()
    logger.info("Psikotes AI API shutdown completed")


app.include_router(api_router, prefix=settings.api_root)


@app.get(f"{settings.api_root}/metrics")
async def get_metrics():
    """Request metrics for the current hour, collected by PerformanceMiddleware."""
    metrics_key = f"metrics_hour:{int(time.time() // 3600)}"
    return {
        "performance_metrics": await cache.aget(metrics_key) or {},
        "timestamp": time.time()
    }

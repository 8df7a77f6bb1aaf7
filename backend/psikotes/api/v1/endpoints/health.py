import time

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from ....core.cache import cache
from ....core.database import get_async_db
from ....utils.timezone import get_jakarta_timezone_info

router = APIRouter()


@router.get("/health")
async def get_basic_health():
    return {
        "status": "healthy",
        "timestamp": time.time(),
        "service": "psikotes-api",
        "timezone": get_jakarta_timezone_info(),
    }


@router.get("/health/details")
async def get_detailed_health(db: AsyncSession = Depends(get_async_db)):
    services = {}

    start_time = time.time()
    try:
        await db.execute(text("SELECT 1"))
        services["database"] = {"status": "healthy", "response_time": round((time.time() - start_time) * 1000, 2)}
    except Exception as e:
        services["database"] = {"status": "unhealthy", "error": str(e)}

    start_time = time.time()
    cache_ok = await cache.ahealth_check()
    services["cache"] = {
        "status": "healthy" if cache_ok else "unhealthy",
        "backend": cache.backend,
        "response_time": round((time.time() - start_time) * 1000, 2),
    }

    overall = "healthy" if all(s["status"] == "healthy" for s in services.values()) else "degraded"
    return {"status": overall, "timestamp": time.time(), "services": services}

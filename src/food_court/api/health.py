import asyncio
from datetime import datetime, timezone

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text

from food_court.config import settings
from food_court.db.session import engine
from food_court.redis_client import get_redis

router = APIRouter(tags=["health"])


@router.get("/health", summary="Health check")
async def health_check():
    """
    Проверка базы и Redis. 503, если хотя бы одна зависимость недоступна.
    """
    deps: dict[str, str] = {}
    healthy = True

    try:
        async with engine.connect() as conn:
            await asyncio.wait_for(conn.execute(text("SELECT 1")), timeout=settings.HEALTH_CHECK_TIMEOUT)
        deps["database"] = "ok"
    except Exception as e:
        deps["database"] = f"error: {str(e)[:100]}"
        healthy = False

    try:
        redis = get_redis()
        await asyncio.wait_for(redis.ping(), timeout=settings.HEALTH_CHECK_TIMEOUT)
        deps["redis"] = "ok"
    except Exception as e:
        deps["redis"] = f"error: {str(e)[:100]}"
        healthy = False

    return JSONResponse(
        content={
            "status": "ok" if healthy else "degraded",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "dependencies": deps,
        },
        status_code=200 if healthy else 503,
    )

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from food_court.api import health
from food_court.api.routes.admin import router as admin_router
from food_court.api.routes.cart import router as cart_router
from food_court.api.routes.notifications import router as notifications_router
from food_court.api.routes.orders import router as orders_router
from food_court.api.routes.restaurant import router as restaurant_router
from food_court.config import settings
from food_court.db.session import AsyncSessionLocal
from food_court.exceptions import FoodCourtError
from food_court.redis_client import close_redis, get_redis
from food_court.tasks.estimated_time import EstimatedTimeTicker

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    ticker = None
    if settings.ESTIMATED_TIME_TICK_ENABLED:
        ticker = EstimatedTimeTicker(AsyncSessionLocal, get_redis(), settings.ESTIMATED_TIME_TICK_SECONDS)
        ticker.start()

    logger.info("Application started")
    yield

    if ticker:
        await ticker.stop()
    await close_redis()
    logger.info("Application stopped")


app = FastAPI(title="Food Court Orders", lifespan=lifespan)


@app.exception_handler(FoodCourtError)
async def food_court_error_handler(request: Request, exc: FoodCourtError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# Подключаем роуты
app.include_router(health.router)
app.include_router(cart_router)
app.include_router(orders_router)
app.include_router(restaurant_router)
app.include_router(admin_router)
app.include_router(notifications_router)

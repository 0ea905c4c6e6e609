from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from food_court.crud import analytics
from food_court.crud import catalog
from food_court.crud import order as order_crud
from food_court.db.session import get_async_session
from food_court.schemas.analytics import PlatformOverview
from food_court.schemas.order import OrderRead, StatusUpdate
from food_court.schemas.restaurant import AvailabilityUpdate, RestaurantCreate, RestaurantRead
from food_court.security import require_admin

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


@router.post("/orders/{order_id}/status", response_model=OrderRead)
async def update_order_status(
    status_in: StatusUpdate,
    order_id: str = Path(..., description="ID заказа"),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Служебная смена статуса по таблице переходов.
    completed здесь недоступен: только через OTP.
    """
    return await order_crud.update_status(db, order_id, status_in.status)


@router.get("/overview", response_model=PlatformOverview)
async def platform_overview(
    now: Optional[datetime] = Query(None, description="Момент расчёта (по умолчанию — текущий)"),
    db: AsyncSession = Depends(get_async_session),
):
    return await analytics.get_platform_overview(db, now=now)


@router.post("/restaurants", response_model=RestaurantRead, status_code=201)
async def create_restaurant(
    restaurant_in: RestaurantCreate,
    db: AsyncSession = Depends(get_async_session),
):
    """
    Регистрация ресторана на фудкорте. Счётчики и рейтинг начинаются с нуля.
    """
    return await catalog.create_restaurant(
        db,
        restaurant_in.id,
        restaurant_in.name,
        address=restaurant_in.address,
        phone=restaurant_in.phone,
        availability=restaurant_in.availability,
    )


@router.get("/restaurants", response_model=List[RestaurantRead])
async def list_restaurants(db: AsyncSession = Depends(get_async_session)):
    return await catalog.list_restaurants(db)


@router.put("/restaurants/{restaurant_id}/availability", response_model=RestaurantRead)
async def set_restaurant_availability(
    availability_in: AvailabilityUpdate,
    restaurant_id: str = Path(..., description="ID ресторана"),
    db: AsyncSession = Depends(get_async_session),
):
    return await catalog.set_restaurant_availability(db, restaurant_id, availability_in.availability)

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from food_court.crud import analytics
from food_court.crud import catalog
from food_court.crud import order as order_crud
from food_court.db.session import get_async_session
from food_court.models.order import OrderStatusEnum
from food_court.schemas.analytics import Dashboard
from food_court.schemas.order import ConfirmOrderRequest, OrderRead, OtpRequest
from food_court.schemas.restaurant import AvailabilityUpdate, MenuItemCreate, MenuItemRead, RestaurantRead
from food_court.security import Principal, require_restaurant

router = APIRouter(prefix="/restaurant", tags=["restaurant"])


@router.get("/orders", response_model=List[OrderRead])
async def list_orders(
    status: Optional[OrderStatusEnum] = Query(None, description="Фильтр по статусу"),
    principal: Principal = Depends(require_restaurant),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Заказы ресторана, новые первыми.
    """
    return await order_crud.list_restaurant_orders(db, principal.id, status=status)


@router.put("/orders/{order_id}/accept", response_model=OrderRead)
async def accept_order(
    confirm_in: Optional[ConfirmOrderRequest] = None,
    order_id: str = Path(..., description="ID заказа"),
    principal: Principal = Depends(require_restaurant),
    db: AsyncSession = Depends(get_async_session),
):
    """
    pending -> confirmed. Ресторан должен быть открыт.
    """
    estimated_time = confirm_in.estimated_time if confirm_in else None
    return await order_crud.confirm_order(db, order_id, principal.id, estimated_time=estimated_time)


@router.put("/orders/{order_id}/cancel", response_model=OrderRead)
async def cancel_order(
    order_id: str = Path(..., description="ID заказа"),
    principal: Principal = Depends(require_restaurant),
    db: AsyncSession = Depends(get_async_session),
):
    return await order_crud.cancel_order(db, order_id, order_crud.ACTOR_RESTAURANT, principal.id)


@router.put("/orders/{order_id}/preparing", response_model=OrderRead)
async def start_preparing(
    order_id: str = Path(..., description="ID заказа"),
    principal: Principal = Depends(require_restaurant),
    db: AsyncSession = Depends(get_async_session),
):
    return await order_crud.start_preparing(db, order_id, principal.id)


@router.put("/orders/{order_id}/prepared", response_model=OrderRead)
async def mark_prepared(
    order_id: str = Path(..., description="ID заказа"),
    principal: Principal = Depends(require_restaurant),
    db: AsyncSession = Depends(get_async_session),
):
    return await order_crud.mark_ready(db, order_id, principal.id)


@router.put("/orders/{order_id}/complete", response_model=OrderRead)
async def complete_order(
    otp_in: OtpRequest,
    order_id: str = Path(..., description="ID заказа"),
    principal: Principal = Depends(require_restaurant),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Выдача заказа по OTP покупателя: ready -> completed и расчёт.
    """
    return await order_crud.complete_order(db, order_id, otp_in.otp, restaurant_id=principal.id)


@router.put("/availability", response_model=RestaurantRead)
async def set_availability(
    availability_in: AvailabilityUpdate,
    principal: Principal = Depends(require_restaurant),
    db: AsyncSession = Depends(get_async_session),
):
    return await catalog.set_restaurant_availability(db, principal.id, availability_in.availability)


@router.get("/dashboard", response_model=Dashboard)
async def get_dashboard(
    now: Optional[datetime] = Query(None, description="Момент расчёта (по умолчанию — текущий)"),
    principal: Principal = Depends(require_restaurant),
    db: AsyncSession = Depends(get_async_session),
):
    return await analytics.get_dashboard(db, principal.id, now=now)


@router.get("/menu", response_model=List[MenuItemRead])
async def get_menu(
    principal: Principal = Depends(require_restaurant),
    db: AsyncSession = Depends(get_async_session),
):
    return await catalog.get_menu(db, principal.id)


@router.post("/menu", response_model=MenuItemRead, status_code=201)
async def add_menu_item(
    item_in: MenuItemCreate,
    principal: Principal = Depends(require_restaurant),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Новая позиция меню; ID выдаётся следующим по порядку (R001-FI003 ...).
    """
    return await catalog.create_menu_item(db, principal.id, **item_in.model_dump())

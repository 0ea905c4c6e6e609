from typing import List

from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from food_court.crud import order as order_crud
from food_court.crud import rating as rating_crud
from food_court.db.session import get_async_session
from food_court.schemas.order import (
    CheckoutRequest,
    CheckoutResponse,
    OrderRead,
    OtpRequest,
    VerifyPaymentRequest,
)
from food_court.schemas.rating import RatingStatus, RatingSubmission
from food_court.security import Principal, require_customer
from food_court.services.payment import PaymentGateway, get_payment_gateway

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post("/checkout", response_model=CheckoutResponse)
async def checkout(
    checkout_in: CheckoutRequest,
    principal: Principal = Depends(require_customer),
    db: AsyncSession = Depends(get_async_session),
    gateway: PaymentGateway = Depends(get_payment_gateway),
):
    """
    Оформление заказа из корзины.
    Возвращает черновик заказа и платёж шлюза; в базе ничего не создаётся.
    """
    return await order_crud.create_order(db, principal.id, checkout_in.order_type, gateway)


@router.post("/verify", response_model=OrderRead, status_code=201)
async def verify_payment(
    payment_in: VerifyPaymentRequest,
    principal: Principal = Depends(require_customer),
    db: AsyncSession = Depends(get_async_session),
    gateway: PaymentGateway = Depends(get_payment_gateway),
):
    """
    Проверка подписи оплаты и сохранение заказа (pending).
    """
    return await order_crud.verify_and_persist_order(
        db,
        principal.id,
        payment_in.razorpay_order_id,
        payment_in.razorpay_payment_id,
        payment_in.razorpay_signature,
        payment_in.order,
        gateway,
    )


@router.get("", response_model=List[OrderRead])
async def list_my_orders(
    principal: Principal = Depends(require_customer),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Последние заказы покупателя, новые первыми.
    """
    return await order_crud.list_orders(db, principal.id)


@router.post("/{order_id}/cancel", response_model=OrderRead)
async def cancel_my_order(
    order_id: str = Path(..., description="ID заказа"),
    principal: Principal = Depends(require_customer),
    db: AsyncSession = Depends(get_async_session),
):
    return await order_crud.cancel_order(db, order_id, order_crud.ACTOR_CUSTOMER, principal.id)


@router.put("/{order_id}/otp", response_model=OrderRead)
async def replace_otp(
    otp_in: OtpRequest,
    order_id: str = Path(..., description="ID заказа"),
    principal: Principal = Depends(require_customer),
    db: AsyncSession = Depends(get_async_session),
):
    return await order_crud.update_otp(db, order_id, otp_in.otp, user_id=principal.id)


@router.post("/{order_id}/ratings", response_model=RatingStatus)
async def rate_order(
    ratings_in: RatingSubmission,
    order_id: str = Path(..., description="ID заказа"),
    principal: Principal = Depends(require_customer),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Оценки блюд завершённого заказа, один раз на заказ.
    """
    return await rating_crud.submit_ratings(db, order_id, principal.id, ratings_in.ratings)


@router.get("/{order_id}/ratings", response_model=RatingStatus)
async def rating_status(
    order_id: str = Path(..., description="ID заказа"),
    principal: Principal = Depends(require_customer),
    db: AsyncSession = Depends(get_async_session),
):
    return await rating_crud.get_rating_status(db, order_id, principal.id)

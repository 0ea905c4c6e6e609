import logging
import random
import re
import secrets
import time
from datetime import datetime, timezone
from decimal import Decimal
from types import SimpleNamespace
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from food_court.config import settings
from food_court.crud.cart import CENT, clear_cart, get_cart_model, price_lines
from food_court.exceptions import (
    AuthFailure,
    InvalidTransition,
    NotFound,
    PaymentVerificationFailed,
    ValidationError,
)
from food_court.models import MenuItem, Order, OrderItem, OrderStatusEnum, OrderTypeEnum, Restaurant
from food_court.schemas.order import CheckoutResponse, OrderDraft, OrderDraftItem, OrderRead
from food_court.services.notifications import publish_order_update
from food_court.services.payment import PaymentGateway

logger = logging.getLogger(__name__)

ACTOR_CUSTOMER = "customer"
ACTOR_RESTAURANT = "restaurant"

# статусы, в которых идёт обратный отсчёт estimated_time
COUNTDOWN_STATUSES = (OrderStatusEnum.confirmed, OrderStatusEnum.preparing)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_otp() -> str:
    """
    4 цифры, равномерно из [1000, 9999).
    Не криптостойко: годится только для сверки на выдаче заказа.
    """
    return str(random.randrange(1000, 9999))


def generate_order_id() -> str:
    return f"ORD{utcnow():%y%m%d}{secrets.token_hex(3).upper()}"


def to_read(order: Order) -> OrderRead:
    return OrderRead.model_validate(order)


async def get_order_model(db: AsyncSession, order_id: str) -> Optional[Order]:
    """
    Заказ с позициями. populate_existing, чтобы после UPDATE не отдать
    устаревший объект из identity map.
    """
    stmt = (
        select(Order)
        .where(Order.order_id == order_id)
        .options(selectinload(Order.items))
        .execution_options(populate_existing=True)
    )
    result = await db.execute(stmt)
    return result.scalars().unique().first()


async def get_order(db: AsyncSession, order_id: str) -> OrderRead:
    order = await get_order_model(db, order_id)
    if not order:
        raise NotFound("Order not found")
    return to_read(order)


async def list_orders(db: AsyncSession, user_id: str, limit: Optional[int] = None) -> List[OrderRead]:
    """
    Последние заказы покупателя, новые первыми.
    """
    stmt = (
        select(Order)
        .where(Order.user_id == user_id)
        .options(selectinload(Order.items))
        .order_by(Order.created_at.desc())
        .limit(limit or settings.ORDER_HISTORY_LIMIT)
    )
    result = await db.execute(stmt)
    return [to_read(o) for o in result.scalars().unique().all()]


async def list_restaurant_orders(
    db: AsyncSession,
    restaurant_id: str,
    status: Optional[OrderStatusEnum] = None,
) -> List[OrderRead]:
    stmt = (
        select(Order)
        .where(Order.restaurant_id == restaurant_id)
        .options(selectinload(Order.items))
        .order_by(Order.created_at.desc())
    )
    if status:
        stmt = stmt.where(Order.status == status)

    result = await db.execute(stmt)
    return [to_read(o) for o in result.scalars().unique().all()]


# ── Оформление и оплата ───────────────────────────────────────────────────────

async def create_order(
    db: AsyncSession,
    user_id: str,
    order_type: OrderTypeEnum,
    gateway: PaymentGateway,
) -> CheckoutResponse:
    """
    Оформление: собирает черновик из корзины и создаёт платёж в шлюзе.
    В базе ничего не сохраняется, заказ появляется только после проверки оплаты.
    """
    cart = await get_cart_model(db, user_id)
    if not cart or not cart.items:
        raise ValidationError("Cart is empty")

    food_item_ids = [item.food_item_id for item in cart.items]
    result = await db.execute(select(MenuItem.restaurant_id).where(MenuItem.id.in_(food_item_ids)))
    restaurant_ids = set(result.scalars().all()) | {cart.restaurant_id}
    restaurant_names = {item.restaurant_name for item in cart.items}
    if len(restaurant_ids) > 1 or len(restaurant_names) > 1:
        raise ValidationError("All items must be from the same restaurant")

    totals = price_lines(cart.items, order_type)
    draft = OrderDraft(
        restaurant_id=cart.restaurant_id,
        items=[
            OrderDraftItem(
                food_item_id=item.food_item_id,
                name=item.name,
                price=item.price,
                quantity=item.quantity,
                image=item.image,
                restaurant_name=item.restaurant_name,
            )
            for item in cart.items
        ],
        order_type=order_type,
        subtotal=totals.subtotal,
        service_charge=totals.service_charge,
        total=totals.total,
    )

    intent = await gateway.create_payment_intent(totals.total, receipt=f"order_{int(time.time() * 1000)}")
    logger.info("Payment intent %s created for %s: total=%s", intent.id, user_id, totals.total)
    return CheckoutResponse(order=draft, payment_intent=intent)


def validate_draft(draft: OrderDraft) -> None:
    """
    Черновик приходит от клиента, поэтому инварианты сумм проверяются заново:
    total == subtotal + service_charge, для dining сбор равен нулю,
    все позиции из одного ресторана.
    """
    if len({item.restaurant_name for item in draft.items}) > 1:
        raise ValidationError("All items must be from the same restaurant")

    subtotal = sum((item.price * item.quantity for item in draft.items), Decimal("0")).quantize(CENT)
    if subtotal != Decimal(draft.subtotal).quantize(CENT):
        raise ValidationError("Subtotal does not match order items")
    if draft.service_charge < 0:
        raise ValidationError("Service charge must not be negative")
    if draft.order_type == OrderTypeEnum.dining and draft.service_charge != 0:
        raise ValidationError("Dining orders carry no service charge")
    if Decimal(draft.total).quantize(CENT) != (subtotal + Decimal(draft.service_charge)).quantize(CENT):
        raise ValidationError("Total must equal subtotal plus service charge")


async def check_draft_against_catalog(db: AsyncSession, draft: OrderDraft) -> None:
    """
    Сверка черновика с меню: каждая позиция принадлежит draft.restaurant_id,
    цена совпадает с dinein_price, сбор пересчитывается по takeaway_price.
    """
    restaurant = await db.get(Restaurant, draft.restaurant_id)
    if not restaurant:
        raise NotFound(f"Restaurant {draft.restaurant_id} not found")

    food_item_ids = [item.food_item_id for item in draft.items]
    result = await db.execute(select(MenuItem).where(MenuItem.id.in_(food_item_ids)))
    catalog = {menu_item.id: menu_item for menu_item in result.scalars().all()}

    priced = []
    for item in draft.items:
        menu_item = catalog.get(item.food_item_id)
        if menu_item is None:
            raise ValidationError(f"Food item {item.food_item_id} is not on the menu")
        if menu_item.restaurant_id != draft.restaurant_id or item.restaurant_name != restaurant.name:
            raise ValidationError("All items must be from the same restaurant")
        if Decimal(item.price).quantize(CENT) != Decimal(menu_item.dinein_price).quantize(CENT):
            raise ValidationError(f"Price of {menu_item.name} does not match the menu")
        priced.append(SimpleNamespace(
            price=menu_item.dinein_price,
            takeaway_price=menu_item.takeaway_price,
            quantity=item.quantity,
        ))

    totals = price_lines(priced, draft.order_type)
    if Decimal(draft.service_charge).quantize(CENT) != totals.service_charge:
        raise ValidationError("Service charge does not match the menu")
    if Decimal(draft.total).quantize(CENT) != totals.total:
        raise ValidationError("Total does not match the menu")


async def verify_and_persist_order(
    db: AsyncSession,
    user_id: str,
    gateway_order_id: str,
    payment_id: str,
    signature: str,
    draft: OrderDraft,
    gateway: PaymentGateway,
) -> OrderRead:
    """
    Проверяет подпись оплаты и сохраняет заказ в статусе pending.
    Генерирует OTP, удаляет корзину покупателя.
    """
    if not gateway.verify_signature(gateway_order_id, payment_id, signature):
        logger.warning("Signature mismatch for payment %s (gateway order %s)", payment_id, gateway_order_id)
        raise PaymentVerificationFailed("Payment verification failed")

    validate_draft(draft)
    await check_draft_against_catalog(db, draft)

    order = Order(
        order_id=generate_order_id(),
        user_id=user_id,
        restaurant_id=draft.restaurant_id,
        order_type=draft.order_type,
        subtotal=Decimal(draft.subtotal).quantize(CENT),
        service_charge=Decimal(draft.service_charge).quantize(CENT),
        total=Decimal(draft.total).quantize(CENT),
        status=OrderStatusEnum.pending,
        otp=generate_otp(),
        created_at=utcnow(),
        estimated_time=0,
        has_rated=False,
        items=[
            OrderItem(
                food_item_id=item.food_item_id,
                name=item.name,
                price=item.price,
                quantity=item.quantity,
                image=item.image,
                restaurant_name=item.restaurant_name,
            )
            for item in draft.items
        ],
    )
    db.add(order)
    await clear_cart(db, user_id)
    await db.commit()

    logger.info("Order %s created for %s after payment %s", order.order_id, user_id, payment_id)
    return await _finish(db, order.order_id)


# ── Переходы статусов ─────────────────────────────────────────────────────────

async def _load_owned(
    db: AsyncSession,
    order_id: str,
    user_id: Optional[str] = None,
    restaurant_id: Optional[str] = None,
) -> Order:
    order = await get_order_model(db, order_id)
    if not order:
        raise NotFound("Order not found")
    # чужой заказ неотличим от несуществующего
    if user_id is not None and order.user_id != user_id:
        raise NotFound("Order not found")
    if restaurant_id is not None and order.restaurant_id != restaurant_id:
        raise NotFound("Order not found")
    return order


def _require_status(order: Order, expected: OrderStatusEnum, action: str) -> None:
    if order.status != expected:
        raise InvalidTransition(
            f"Order {order.order_id} cannot be {action}: status is '{order.status.value}', "
            f"expected '{expected.value}'"
        )


async def _compare_and_set(db: AsyncSession, order: Order, target: OrderStatusEnum, **values) -> None:
    """
    UPDATE ... WHERE status = <прочитанный статус>.
    Если статус успел смениться в другом запросе, строк 0 — откатываемся.
    """
    order_id, expected = order.order_id, order.status
    result = await db.execute(
        update(Order)
        .where(Order.order_id == order_id, Order.status == expected)
        .values(status=target, **values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        await db.rollback()
        raise InvalidTransition(f"Order {order_id} was modified concurrently, retry with fresh state")
    logger.info("Order %s: %s -> %s", order_id, expected.value, target.value)


async def _finish(db: AsyncSession, order_id: str) -> OrderRead:
    """
    Перечитывает заказ после коммита и отправляет событие покупателю.
    """
    order = await get_order_model(db, order_id)
    read = to_read(order)
    await publish_order_update(read)
    return read


async def cancel_order(db: AsyncSession, order_id: str, actor: str, actor_id: str) -> OrderRead:
    """
    Отмена возможна только из pending — и покупателем, и рестораном.
    """
    if actor == ACTOR_CUSTOMER:
        order = await _load_owned(db, order_id, user_id=actor_id)
    elif actor == ACTOR_RESTAURANT:
        order = await _load_owned(db, order_id, restaurant_id=actor_id)
    else:
        raise ValidationError(f"Unknown actor: {actor}")

    _require_status(order, OrderStatusEnum.pending, "cancelled")
    await _compare_and_set(db, order, OrderStatusEnum.cancelled, cancelled_at=utcnow())
    await db.commit()
    return await _finish(db, order_id)


async def confirm_order(
    db: AsyncSession,
    order_id: str,
    restaurant_id: str,
    estimated_time: Optional[int] = None,
) -> OrderRead:
    order = await _load_owned(db, order_id, restaurant_id=restaurant_id)
    _require_status(order, OrderStatusEnum.pending, "accepted")

    restaurant = await db.get(Restaurant, order.restaurant_id)
    if not restaurant:
        raise NotFound("Restaurant not found")
    if not restaurant.availability:
        raise InvalidTransition("Restaurant is closed")

    if estimated_time is None:
        estimated_time = settings.DEFAULT_ESTIMATED_TIME_MINUTES

    await _compare_and_set(
        db,
        order,
        OrderStatusEnum.confirmed,
        confirmed_at=utcnow(),
        estimated_time=estimated_time,
    )
    await db.commit()
    return await _finish(db, order_id)


async def start_preparing(db: AsyncSession, order_id: str, restaurant_id: str) -> OrderRead:
    order = await _load_owned(db, order_id, restaurant_id=restaurant_id)
    _require_status(order, OrderStatusEnum.confirmed, "prepared")
    await _compare_and_set(db, order, OrderStatusEnum.preparing)
    await db.commit()
    return await _finish(db, order_id)


async def mark_ready(db: AsyncSession, order_id: str, restaurant_id: str) -> OrderRead:
    order = await _load_owned(db, order_id, restaurant_id=restaurant_id)
    _require_status(order, OrderStatusEnum.preparing, "marked as ready")
    await _compare_and_set(db, order, OrderStatusEnum.ready)
    await db.commit()
    return await _finish(db, order_id)


async def complete_order(
    db: AsyncSession,
    order_id: str,
    otp,
    restaurant_id: Optional[str] = None,
) -> OrderRead:
    """
    Завершение по OTP: ready -> completed и расчёт в одной транзакции.
    OTP сравнивается как строка, число 4821 и "4821" равны.
    """
    if otp is None or str(otp) == "":
        raise ValidationError("OTP is required")

    order = await _load_owned(db, order_id, restaurant_id=restaurant_id)
    _require_status(order, OrderStatusEnum.ready, "completed")
    if str(order.otp) != str(otp):
        raise AuthFailure("Invalid OTP")

    await _compare_and_set(db, order, OrderStatusEnum.completed)
    await _settle(db, order)
    await db.commit()
    return await _finish(db, order_id)


async def _match_catalog_item(db: AsyncSession, restaurant_id: str, line: OrderItem) -> Optional[str]:
    """
    Позиция меню для строки заказа: сначала по сохранённому food_item_id,
    затем по названию (для строк, у которых id уже не совпадает).
    """
    result = await db.execute(
        select(MenuItem.id).where(MenuItem.id == line.food_item_id, MenuItem.restaurant_id == restaurant_id)
    )
    item_id = result.scalar_one_or_none()
    if item_id:
        return item_id

    result = await db.execute(
        select(MenuItem.id)
        .where(MenuItem.name == line.name, MenuItem.restaurant_id == restaurant_id)
        .limit(1)
    )
    return result.scalar_one_or_none()


async def _settle(db: AsyncSession, order: Order) -> None:
    """
    Счётчики ресторана и позиций меню. Только атомарные инкременты в SQL,
    без read-modify-write. Ненайденная позиция пропускается с предупреждением.
    """
    await db.execute(
        update(Restaurant)
        .where(Restaurant.id == order.restaurant_id)
        .values(
            order_count=Restaurant.order_count + 1,
            total_revenue=Restaurant.total_revenue + order.total,
        )
        .execution_options(synchronize_session=False)
    )

    for line in order.items:
        item_id = await _match_catalog_item(db, order.restaurant_id, line)
        if item_id is None:
            logger.warning(
                "Food item '%s' (%s) not found for restaurant %s, order %s not attributed",
                line.name, line.food_item_id, order.restaurant_id, order.order_id,
            )
            continue

        await db.execute(
            update(MenuItem)
            .where(MenuItem.id == item_id)
            .values(
                total_orders=MenuItem.total_orders + line.quantity,
                total_revenue=MenuItem.total_revenue + Decimal(line.price) * line.quantity,
            )
            .execution_options(synchronize_session=False)
        )


async def update_otp(db: AsyncSession, order_id: str, otp, user_id: Optional[str] = None) -> OrderRead:
    """
    Ручная замена OTP (восстановление). Просто перезаписывает значение.
    """
    otp = str(otp)
    if not re.fullmatch(r"\d{4}", otp):
        raise ValidationError("OTP must be exactly 4 digits")

    await _load_owned(db, order_id, user_id=user_id)
    await db.execute(
        update(Order)
        .where(Order.order_id == order_id)
        .values(otp=otp)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    logger.info("Order %s: OTP replaced", order_id)
    return await _finish(db, order_id)


async def update_status(db: AsyncSession, order_id: str, status: str) -> OrderRead:
    """
    Служебная смена статуса: выбирает переход из таблицы по целевому статусу.
    completed только через OTP, в pending перейти нельзя.
    """
    try:
        target = OrderStatusEnum(status)
    except ValueError:
        raise ValidationError(f"Invalid status: {status}")

    if target == OrderStatusEnum.completed:
        raise ValidationError("Completing an order requires the OTP")
    if target == OrderStatusEnum.pending:
        raise InvalidTransition("Orders cannot return to pending")

    order = await _load_owned(db, order_id)
    if target == OrderStatusEnum.confirmed:
        return await confirm_order(db, order_id, order.restaurant_id)
    if target == OrderStatusEnum.preparing:
        return await start_preparing(db, order_id, order.restaurant_id)
    if target == OrderStatusEnum.ready:
        return await mark_ready(db, order_id, order.restaurant_id)
    return await cancel_order(db, order_id, ACTOR_RESTAURANT, order.restaurant_id)


async def decrement_estimated_times(db: AsyncSession) -> int:
    """
    Минутный тик: estimated_time -= 1 для confirmed/preparing с остатком > 0.
    Один UPDATE, возвращает число затронутых заказов.
    """
    result = await db.execute(
        update(Order)
        .where(Order.status.in_(COUNTDOWN_STATUSES), Order.estimated_time > 0)
        .values(estimated_time=Order.estimated_time - 1)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    return result.rowcount

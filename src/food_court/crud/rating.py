import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import List

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from food_court.crud.order import get_order_model
from food_court.exceptions import Conflict, InvalidTransition, NotFound, ValidationError
from food_court.models import ItemRating, MenuItem, Order, OrderStatusEnum, Restaurant
from food_court.schemas.rating import ItemRatingIn, RatingStatus

logger = logging.getLogger(__name__)

RATING_PLACES = Decimal("0.01")


def round_rating(value) -> Decimal:
    return Decimal(str(value)).quantize(RATING_PLACES, rounding=ROUND_HALF_UP)


async def _load_customer_order(db: AsyncSession, order_id: str, user_id: str) -> Order:
    order = await get_order_model(db, order_id)
    if not order or order.user_id != user_id:
        raise NotFound("Order not found")
    return order


async def get_rating_status(db: AsyncSession, order_id: str, user_id: str) -> RatingStatus:
    order = await _load_customer_order(db, order_id, user_id)
    return RatingStatus(order_id=order.order_id, has_rated=order.has_rated)


async def submit_ratings(
    db: AsyncSession,
    order_id: str,
    user_id: str,
    ratings: List[ItemRatingIn],
) -> RatingStatus:
    """
    Оценки блюд завершённого заказа. Один раз на заказ (флаг has_rated).

    Сначала вся валидация, потом запись: оценки, средние по блюдам,
    взвешенное среднее ресторана и has_rated коммитятся вместе.
    """
    if not ratings:
        raise ValidationError("At least one rating is required")

    order = await _load_customer_order(db, order_id, user_id)
    if order.status != OrderStatusEnum.completed:
        raise InvalidTransition("Only completed orders can be rated")
    if order.has_rated:
        raise Conflict("Order has already been rated")

    ordered_ids = {line.food_item_id for line in order.items}
    seen = set()
    for entry in ratings:
        if not 1 <= entry.rating <= 5:
            raise ValidationError("Rating must be between 1 and 5")
        if entry.food_item_id not in ordered_ids:
            raise ValidationError(f"Food item {entry.food_item_id} is not part of this order")
        if entry.food_item_id in seen:
            raise ValidationError(f"Food item {entry.food_item_id} rated twice")
        seen.add(entry.food_item_id)

    result = await db.execute(select(MenuItem.id).where(MenuItem.id.in_(list(seen))))
    missing = seen - set(result.scalars().all())
    if missing:
        raise NotFound(f"Food item {sorted(missing)[0]} not found")

    # флаг ставится условно: второй параллельный запрос получит 0 строк
    result = await db.execute(
        update(Order)
        .where(Order.order_id == order_id, Order.has_rated.is_(False))
        .values(has_rated=True)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        await db.rollback()
        raise Conflict("Order has already been rated")

    for entry in ratings:
        existing = await db.execute(
            select(ItemRating).where(
                ItemRating.food_item_id == entry.food_item_id,
                ItemRating.user_id == user_id,
                ItemRating.order_id == order_id,
            )
        )
        record = existing.scalars().first()
        if record:
            record.rating = entry.rating
        else:
            db.add(ItemRating(
                food_item_id=entry.food_item_id,
                user_id=user_id,
                order_id=order_id,
                rating=entry.rating,
            ))
    await db.flush()

    for food_item_id in seen:
        await _recompute_item_rating(db, food_item_id)
    await _recompute_restaurant_rating(db, order.restaurant_id)

    await db.commit()
    logger.info("Order %s rated by %s: %d item(s)", order_id, user_id, len(ratings))
    return RatingStatus(order_id=order_id, has_rated=True)


async def _recompute_item_rating(db: AsyncSession, food_item_id: str) -> None:
    result = await db.execute(
        select(func.avg(ItemRating.rating), func.count(ItemRating.id))
        .where(ItemRating.food_item_id == food_item_id)
    )
    mean, count = result.one()
    await db.execute(
        update(MenuItem)
        .where(MenuItem.id == food_item_id)
        .values(rating=round_rating(mean or 0), ratings_count=count)
        .execution_options(synchronize_session=False)
    )


async def _recompute_restaurant_rating(db: AsyncSession, restaurant_id: str) -> None:
    """
    Σ(rating × ratings_count) / Σ(ratings_count) по блюдам, у которых есть оценки.
    """
    result = await db.execute(
        select(MenuItem.rating, MenuItem.ratings_count)
        .where(MenuItem.restaurant_id == restaurant_id, MenuItem.ratings_count > 0)
    )
    rows = result.all()
    weight = sum(count for _, count in rows)
    if weight:
        mean = sum(Decimal(str(rating)) * count for rating, count in rows) / weight
    else:
        mean = Decimal("0")

    await db.execute(
        update(Restaurant)
        .where(Restaurant.id == restaurant_id)
        .values(rating=round_rating(mean))
        .execution_options(synchronize_session=False)
    )

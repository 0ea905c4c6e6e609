"""
Аналитика для дашборда ресторана и обзора платформы.

Итоги за всё время берутся из счётчиков ресторана (без полного прохода по
заказам). Окна «сегодня/вчера/месяц» и недельный тренд считаются по
завершённым заказам в одном часовом поясе DASHBOARD_TIMEZONE.
"""
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal, ROUND_FLOOR, ROUND_HALF_UP
from typing import Iterable, List, Optional, Tuple
from zoneinfo import ZoneInfo

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from food_court.config import settings
from food_court.crud.catalog import get_restaurant
from food_court.models import MenuItem, Order, OrderStatusEnum, Restaurant
from food_court.schemas.analytics import (
    CategoryRevenue,
    DailyTrendPoint,
    Dashboard,
    DashboardStats,
    MostSoldItem,
    PlatformOverview,
    RestaurantRevenue,
)

CENT = Decimal("0.01")
TREND_DAYS = 7
TOP_ITEMS = 5
DAY_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
UNCATEGORIZED = "Uncategorized"


def _money(value) -> Decimal:
    return Decimal(str(value or 0)).quantize(CENT)


def percent_change(current, previous) -> int:
    """
    Изменение в процентах, округление как Math.round (floor(x + 0.5)).
    С нуля до положительного — 100, с нуля до нуля — 0.
    """
    current, previous = Decimal(str(current)), Decimal(str(previous))
    if previous == 0:
        return 100 if current > 0 else 0
    value = (current - previous) / previous * 100 + Decimal("0.5")
    return int(value.to_integral_value(rounding=ROUND_FLOOR))


def as_utc(moment: datetime) -> datetime:
    # SQLite отдаёт naive datetime, в базе всё хранится в UTC
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def local_midnight(day: date, tz: ZoneInfo) -> datetime:
    return datetime.combine(day, time.min, tzinfo=tz)


def month_start(day: date) -> date:
    return day.replace(day=1)


def previous_month_start(day: date) -> date:
    return month_start(month_start(day) - timedelta(days=1))


async def _completed_orders(
    db: AsyncSession,
    since: datetime,
    tz: ZoneInfo,
    restaurant_id: Optional[str] = None,
) -> List[Tuple[date, Decimal]]:
    """
    (локальная дата, сумма) завершённых заказов, созданных не раньше `since`.
    """
    stmt = select(Order.created_at, Order.total).where(
        Order.status == OrderStatusEnum.completed,
        Order.created_at >= since.astimezone(timezone.utc),
    )
    if restaurant_id:
        stmt = stmt.where(Order.restaurant_id == restaurant_id)

    result = await db.execute(stmt)
    return [(as_utc(created_at).astimezone(tz).date(), _money(total)) for created_at, total in result.all()]


def _window(rows: Iterable[Tuple[date, Decimal]], predicate) -> Tuple[int, Decimal]:
    selected = [total for day, total in rows if predicate(day)]
    return len(selected), _money(sum(selected, Decimal("0")))


def build_daily_trend(days: Iterable[date], today: date) -> List[DailyTrendPoint]:
    """
    7 корзин по календарным дням, от старого к сегодняшнему, пустые дни — нули.
    """
    buckets = {today - timedelta(days=offset): 0 for offset in range(TREND_DAYS - 1, -1, -1)}
    for day in days:
        if day in buckets:
            buckets[day] += 1
    return [
        DailyTrendPoint(day=DAY_NAMES[day.weekday()], date=day, orders=count)
        for day, count in sorted(buckets.items())
    ]


async def _most_sold_items(db: AsyncSession, restaurant_id: Optional[str] = None) -> List[MostSoldItem]:
    stmt = (
        select(MenuItem.id, MenuItem.name, MenuItem.total_orders)
        .where(MenuItem.total_orders > 0)
        .order_by(MenuItem.total_orders.desc(), MenuItem.name)
        .limit(TOP_ITEMS)
    )
    if restaurant_id:
        stmt = stmt.where(MenuItem.restaurant_id == restaurant_id)

    rows = (await db.execute(stmt)).all()
    top_total = sum(count for _, _, count in rows)
    return [
        MostSoldItem(
            food_item_id=item_id,
            name=name,
            count=count,
            percentage=int((Decimal(count) * 100 / top_total).quantize(Decimal("1"), rounding=ROUND_HALF_UP)),
        )
        for item_id, name, count in rows
    ]


async def _revenue_by_category(db: AsyncSession, restaurant_id: str) -> List[CategoryRevenue]:
    revenue = func.sum(MenuItem.total_revenue)
    result = await db.execute(
        select(MenuItem.category, revenue)
        .where(MenuItem.restaurant_id == restaurant_id, MenuItem.total_revenue > 0)
        .group_by(MenuItem.category)
        .order_by(revenue.desc())
    )
    return [
        CategoryRevenue(category=category or UNCATEGORIZED, revenue=_money(total))
        for category, total in result.all()
    ]


async def get_dashboard(db: AsyncSession, restaurant_id: str, now: Optional[datetime] = None) -> Dashboard:
    restaurant = await get_restaurant(db, restaurant_id)

    tz = ZoneInfo(settings.DASHBOARD_TIMEZONE)
    today = as_utc(now or datetime.now(timezone.utc)).astimezone(tz).date()
    yesterday = today - timedelta(days=1)
    this_month = month_start(today)
    last_month = previous_month_start(today)

    since = min(last_month, today - timedelta(days=TREND_DAYS - 1))
    rows = await _completed_orders(db, local_midnight(since, tz), tz, restaurant_id)

    today_orders, today_revenue = _window(rows, lambda d: d == today)
    yesterday_orders, yesterday_revenue = _window(rows, lambda d: d == yesterday)
    month_orders, month_revenue = _window(rows, lambda d: month_start(d) == this_month)
    last_month_orders, last_month_revenue = _window(rows, lambda d: month_start(d) == last_month)

    stats = DashboardStats(
        total_orders=restaurant.order_count,
        total_revenue=_money(restaurant.total_revenue),
        today_orders=today_orders,
        today_revenue=today_revenue,
        yesterday_orders=yesterday_orders,
        yesterday_revenue=yesterday_revenue,
        today_orders_change=percent_change(today_orders, yesterday_orders),
        today_revenue_change=percent_change(today_revenue, yesterday_revenue),
        this_month_orders=month_orders,
        this_month_revenue=month_revenue,
        last_month_orders=last_month_orders,
        last_month_revenue=last_month_revenue,
        month_orders_change=percent_change(month_orders, last_month_orders),
        month_revenue_change=percent_change(month_revenue, last_month_revenue),
    )

    return Dashboard(
        stats=stats,
        daily_trend=build_daily_trend((day for day, _ in rows), today),
        revenue_by_category=await _revenue_by_category(db, restaurant_id),
        most_sold_items=await _most_sold_items(db, restaurant_id),
    )


async def get_platform_overview(db: AsyncSession, now: Optional[datetime] = None) -> PlatformOverview:
    """
    Сводка для администратора по всем ресторанам.
    """
    tz = ZoneInfo(settings.DASHBOARD_TIMEZONE)
    today = as_utc(now or datetime.now(timezone.utc)).astimezone(tz).date()

    result = await db.execute(
        select(Restaurant).order_by(Restaurant.total_revenue.desc(), Restaurant.id)
    )
    restaurants = result.scalars().all()

    rows = await _completed_orders(db, local_midnight(today - timedelta(days=TREND_DAYS - 1), tz), tz)

    return PlatformOverview(
        restaurants=len(restaurants),
        total_orders=sum(r.order_count for r in restaurants),
        total_revenue=_money(sum((_money(r.total_revenue) for r in restaurants), Decimal("0"))),
        revenue_per_restaurant=[
            RestaurantRevenue(
                restaurant_id=r.id,
                name=r.name,
                order_count=r.order_count,
                total_revenue=_money(r.total_revenue),
            )
            for r in restaurants
        ],
        daily_trend=build_daily_trend((day for day, _ in rows), today),
        most_sold_items=await _most_sold_items(db),
    )

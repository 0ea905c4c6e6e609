from datetime import date, datetime, timezone
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest

from food_court.crud import analytics
from food_court.models import OrderStatusEnum, Restaurant

IST = ZoneInfo("Asia/Kolkata")
NOW = datetime(2026, 10, 19, 12, 0, tzinfo=IST)


def ist(year, month, day, hour=12, minute=0):
    return datetime(year, month, day, hour, minute, tzinfo=IST).astimezone(timezone.utc)


@pytest.mark.parametrize(
    "current, previous, expected",
    [
        (3, 2, 50),
        (1, 0, 100),
        (0, 0, 0),
        (0, 4, -100),
        (1, 3, -67),
        (5, 2, 150),
        (Decimal("250.00"), Decimal("200.00"), 25),
    ],
)
def test_percent_change(current, previous, expected):
    assert analytics.percent_change(current, previous) == expected


def test_month_helpers():
    assert analytics.month_start(date(2026, 10, 19)) == date(2026, 10, 1)
    assert analytics.previous_month_start(date(2026, 10, 19)) == date(2026, 9, 1)
    assert analytics.previous_month_start(date(2026, 1, 5)) == date(2025, 12, 1)


def test_naive_datetimes_are_utc():
    naive = datetime(2026, 10, 18, 19, 0)
    assert analytics.as_utc(naive).astimezone(IST).date() == date(2026, 10, 19)


@pytest.mark.asyncio
async def test_daily_trend_is_zero_filled(db, make_order):
    await make_order(status=OrderStatusEnum.completed, created_at=ist(2026, 10, 13))
    await make_order(status=OrderStatusEnum.completed, created_at=ist(2026, 10, 16))
    await make_order(status=OrderStatusEnum.cancelled, created_at=ist(2026, 10, 14))
    await make_order(status=OrderStatusEnum.completed, created_at=ist(2026, 10, 12))

    dashboard = await analytics.get_dashboard(db, "R001", now=NOW)

    assert [p.orders for p in dashboard.daily_trend] == [1, 0, 0, 1, 0, 0, 0]
    assert dashboard.daily_trend[0].date == date(2026, 10, 13)
    assert dashboard.daily_trend[-1].date == date(2026, 10, 19)
    assert dashboard.daily_trend[-1].day == "Mon"


@pytest.mark.asyncio
async def test_day_and_month_windows_use_dashboard_timezone(db, seeded, make_order):
    spice_hub = await db.get(Restaurant, "R001")
    spice_hub.order_count, spice_hub.total_revenue = 42, Decimal("10500.00")
    await db.commit()

    # 00:30 IST 19 октября — уже «сегодня», хотя в UTC ещё 18-е
    await make_order(status=OrderStatusEnum.completed, created_at=ist(2026, 10, 19, 0, 30), total="100.00")
    await make_order(status=OrderStatusEnum.completed, created_at=ist(2026, 10, 19, 11, 0), total="150.00")
    # 23:30 IST 18 октября — вчера
    await make_order(status=OrderStatusEnum.completed, created_at=ist(2026, 10, 18, 23, 30), total="200.00")
    await make_order(status=OrderStatusEnum.completed, created_at=ist(2026, 9, 10), total="50.00")
    await make_order(status=OrderStatusEnum.completed, created_at=ist(2026, 9, 20), total="50.00")
    await make_order(status=OrderStatusEnum.completed, created_at=ist(2026, 8, 31), total="999.00")
    await make_order(status=OrderStatusEnum.ready, created_at=ist(2026, 10, 19, 9, 0), total="75.00")
    await make_order(status=OrderStatusEnum.completed, restaurant_id="R002", created_at=ist(2026, 10, 19),
                     total="20.00", lines=[("R002-FI001", "Cutting Chai", Decimal("20.00"), 1)])

    stats = (await analytics.get_dashboard(db, "R001", now=NOW)).stats

    assert (stats.total_orders, stats.total_revenue) == (42, Decimal("10500.00"))
    assert (stats.today_orders, stats.today_revenue) == (2, Decimal("250.00"))
    assert (stats.yesterday_orders, stats.yesterday_revenue) == (1, Decimal("200.00"))
    assert stats.today_orders_change == 100
    assert stats.today_revenue_change == 25
    assert (stats.this_month_orders, stats.this_month_revenue) == (3, Decimal("450.00"))
    assert (stats.last_month_orders, stats.last_month_revenue) == (2, Decimal("100.00"))
    assert stats.month_orders_change == 50
    assert stats.month_revenue_change == 350


@pytest.mark.asyncio
async def test_category_revenue_and_top_items(db, seeded):
    seeded["paneer"].total_orders, seeded["paneer"].total_revenue = 3, Decimal("360.00")
    seeded["dosa"].total_orders, seeded["dosa"].total_revenue = 1, Decimal("130.00")
    seeded["chai"].total_orders, seeded["chai"].total_revenue = 9, Decimal("180.00")
    await db.commit()

    dashboard = await analytics.get_dashboard(db, "R001", now=NOW)

    assert [(c.category, c.revenue) for c in dashboard.revenue_by_category] == [
        ("Starters", Decimal("360.00")),
        ("Mains", Decimal("130.00")),
    ]
    assert [(i.name, i.count, i.percentage) for i in dashboard.most_sold_items] == [
        ("Paneer Tikka", 3, 75),
        ("Masala Dosa", 1, 25),
    ]


@pytest.mark.asyncio
async def test_empty_dashboard(db, seeded):
    dashboard = await analytics.get_dashboard(db, "R002", now=NOW)

    assert dashboard.stats.today_orders == 0
    assert dashboard.stats.today_orders_change == 0
    assert [p.orders for p in dashboard.daily_trend] == [0] * 7
    assert dashboard.revenue_by_category == []
    assert dashboard.most_sold_items == []


@pytest.mark.asyncio
async def test_platform_overview(db, seeded, make_order):
    spice_hub, chai_point = await db.get(Restaurant, "R001"), await db.get(Restaurant, "R002")
    spice_hub.order_count, spice_hub.total_revenue = 3, Decimal("700.00")
    chai_point.order_count, chai_point.total_revenue = 5, Decimal("100.00")
    seeded["chai"].total_orders = 5
    await db.commit()

    await make_order(status=OrderStatusEnum.completed, created_at=ist(2026, 10, 19))
    await make_order(status=OrderStatusEnum.completed, restaurant_id="R002", created_at=ist(2026, 10, 17),
                     lines=[("R002-FI001", "Cutting Chai", Decimal("20.00"), 1)])

    overview = await analytics.get_platform_overview(db, now=NOW)

    assert overview.restaurants == 2
    assert (overview.total_orders, overview.total_revenue) == (8, Decimal("800.00"))
    assert [r.restaurant_id for r in overview.revenue_per_restaurant] == ["R001", "R002"]
    assert [p.orders for p in overview.daily_trend] == [0, 0, 0, 0, 1, 0, 1]
    assert [(i.food_item_id, i.percentage) for i in overview.most_sold_items] == [("R002-FI001", 100)]

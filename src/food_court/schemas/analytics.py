from pydantic import BaseModel
from typing import List
from datetime import date
from decimal import Decimal


class DashboardStats(BaseModel):
    total_orders: int
    total_revenue: Decimal
    today_orders: int
    today_revenue: Decimal
    yesterday_orders: int
    yesterday_revenue: Decimal
    today_orders_change: int
    today_revenue_change: int
    this_month_orders: int
    this_month_revenue: Decimal
    last_month_orders: int
    last_month_revenue: Decimal
    month_orders_change: int
    month_revenue_change: int


class DailyTrendPoint(BaseModel):
    day: str
    date: date
    orders: int


class CategoryRevenue(BaseModel):
    category: str
    revenue: Decimal


class MostSoldItem(BaseModel):
    food_item_id: str
    name: str
    count: int
    percentage: int


class Dashboard(BaseModel):
    stats: DashboardStats
    daily_trend: List[DailyTrendPoint]
    revenue_by_category: List[CategoryRevenue]
    most_sold_items: List[MostSoldItem]


class RestaurantRevenue(BaseModel):
    restaurant_id: str
    name: str
    order_count: int
    total_revenue: Decimal


class PlatformOverview(BaseModel):
    restaurants: int
    total_orders: int
    total_revenue: Decimal
    revenue_per_restaurant: List[RestaurantRevenue]
    daily_trend: List[DailyTrendPoint]
    most_sold_items: List[MostSoldItem]

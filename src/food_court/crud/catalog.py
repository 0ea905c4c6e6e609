import re
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from food_court.exceptions import Conflict, NotFound, ValidationError
from food_court.models import MenuItem, Restaurant

MENU_ITEM_ID_RE = re.compile(r"-FI(\d+)$")


async def get_restaurant(db: AsyncSession, restaurant_id: str) -> Restaurant:
    restaurant = await db.get(Restaurant, restaurant_id)
    if not restaurant:
        raise NotFound(f"Restaurant {restaurant_id} not found")
    return restaurant


async def create_restaurant(
    db: AsyncSession,
    restaurant_id: str,
    name: str,
    address: Optional[str] = None,
    phone: Optional[str] = None,
    availability: bool = True,
) -> Restaurant:
    if phone and not re.fullmatch(r"\d{10}", phone):
        raise ValidationError("Phone number must be exactly 10 digits")
    if await db.get(Restaurant, restaurant_id):
        raise Conflict(f"Restaurant {restaurant_id} already exists")

    restaurant = Restaurant(
        id=restaurant_id,
        name=name.strip(),
        address=address,
        phone=phone,
        availability=availability,
        order_count=0,
        total_revenue=Decimal("0"),
        rating=Decimal("0"),
    )
    db.add(restaurant)
    await db.commit()
    await db.refresh(restaurant)
    return restaurant


async def list_restaurants(db: AsyncSession) -> List[Restaurant]:
    result = await db.execute(select(Restaurant).order_by(Restaurant.id))
    return result.scalars().all()


async def set_restaurant_availability(db: AsyncSession, restaurant_id: str, availability: bool) -> Restaurant:
    """
    Открывает/закрывает ресторан. Закрытый ресторан не может принимать заказы.
    """
    result = await db.execute(
        update(Restaurant)
        .where(Restaurant.id == restaurant_id)
        .values(availability=availability)
    )
    if result.rowcount == 0:
        raise NotFound(f"Restaurant {restaurant_id} not found")
    await db.commit()
    return await get_restaurant(db, restaurant_id)


async def next_menu_item_id(db: AsyncSession, restaurant_id: str) -> str:
    """
    Следующий идентификатор позиции: <restaurant_id>-FI001, -FI002 ...
    """
    result = await db.execute(select(MenuItem.id).where(MenuItem.restaurant_id == restaurant_id))
    numbers = [
        int(match.group(1))
        for match in (MENU_ITEM_ID_RE.search(item_id) for item_id in result.scalars().all())
        if match
    ]
    return f"{restaurant_id}-FI{(max(numbers, default=0) + 1):03d}"


async def create_menu_item(
    db: AsyncSession,
    restaurant_id: str,
    name: str,
    dinein_price: Decimal,
    takeaway_price: Decimal = Decimal("0"),
    category: Optional[str] = None,
    is_veg: bool = True,
    description: Optional[str] = None,
    image: Optional[str] = None,
) -> MenuItem:
    await get_restaurant(db, restaurant_id)

    if Decimal(dinein_price) < 0 or Decimal(takeaway_price) < 0:
        raise ValidationError("Prices must not be negative")

    item = MenuItem(
        id=await next_menu_item_id(db, restaurant_id),
        restaurant_id=restaurant_id,
        name=name.strip(),
        description=description.strip() if description else "",
        image=image,
        category=category,
        dinein_price=Decimal(dinein_price),
        takeaway_price=Decimal(takeaway_price),
        is_veg=is_veg,
        is_available=True,
        rating=Decimal("0"),
        ratings_count=0,
        total_orders=0,
        total_revenue=Decimal("0"),
    )
    db.add(item)
    await db.commit()
    await db.refresh(item)
    return item


async def get_menu(db: AsyncSession, restaurant_id: str) -> List[MenuItem]:
    await get_restaurant(db, restaurant_id)
    result = await db.execute(
        select(MenuItem)
        .where(MenuItem.restaurant_id == restaurant_id)
        .order_by(MenuItem.id)
    )
    return result.scalars().all()

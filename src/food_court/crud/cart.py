from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from food_court.exceptions import NotFound, ValidationError
from food_court.models import Cart, CartItem, MenuItem, OrderTypeEnum, Restaurant
from food_court.schemas.cart import CartRead, CartItemRead

CENT = Decimal("0.01")


@dataclass
class CartTotals:
    subtotal: Decimal
    service_charge: Decimal
    total: Decimal


def price_lines(lines, order_type: OrderTypeEnum) -> CartTotals:
    """
    Считает суммы корзины.
    Subtotal — цена в зале × количество; для takeaway к ней добавляется
    надбавка takeaway_price × количество (service_charge). Для dining надбавки нет.
    """
    subtotal = sum((Decimal(line.price) * line.quantity for line in lines), Decimal("0"))
    if OrderTypeEnum(order_type) == OrderTypeEnum.takeaway:
        service_charge = sum((Decimal(line.takeaway_price) * line.quantity for line in lines), Decimal("0"))
    else:
        service_charge = Decimal("0")

    subtotal = subtotal.quantize(CENT)
    service_charge = service_charge.quantize(CENT)
    return CartTotals(subtotal=subtotal, service_charge=service_charge, total=subtotal + service_charge)


async def get_cart_model(db: AsyncSession, user_id: str) -> Optional[Cart]:
    result = await db.execute(
        select(Cart)
        .where(Cart.user_id == user_id)
        .options(selectinload(Cart.items))
    )
    return result.scalars().unique().first()


def _cart_read(user_id: str, cart: Optional[Cart]) -> CartRead:
    if cart is None:
        return CartRead(user_id=user_id, items=[])
    return CartRead(
        user_id=cart.user_id,
        restaurant_id=cart.restaurant_id,
        items=[CartItemRead.model_validate(item) for item in cart.items],
    )


async def get_cart(db: AsyncSession, user_id: str) -> CartRead:
    return _cart_read(user_id, await get_cart_model(db, user_id))


async def add_item(db: AsyncSession, user_id: str, food_item_id: str, quantity: int = 1) -> CartRead:
    """
    Добавляет блюдо в корзину.
    В корзине могут быть блюда только одного ресторана; повторное
    добавление увеличивает количество.
    """
    if quantity < 1:
        raise ValidationError("Quantity must be at least 1")

    result = await db.execute(
        select(MenuItem, Restaurant)
        .join(Restaurant, Restaurant.id == MenuItem.restaurant_id)
        .where(MenuItem.id == food_item_id)
    )
    row = result.first()
    if not row:
        raise NotFound(f"Food item {food_item_id} not found")
    menu_item, restaurant = row

    if not menu_item.is_available:
        raise ValidationError(f"{menu_item.name} is not available right now")

    cart = await get_cart_model(db, user_id)
    if cart is None:
        cart = Cart(user_id=user_id, restaurant_id=restaurant.id, items=[])
        db.add(cart)
    elif cart.items and cart.restaurant_id != restaurant.id:
        raise ValidationError("Add items from the same food court only.")
    else:
        cart.restaurant_id = restaurant.id

    line = next((item for item in cart.items if item.food_item_id == food_item_id), None)
    if line:
        line.quantity += quantity
    else:
        cart.items.append(
            CartItem(
                food_item_id=menu_item.id,
                name=menu_item.name,
                price=menu_item.dinein_price,
                takeaway_price=menu_item.takeaway_price,
                quantity=quantity,
                image=menu_item.image,
                restaurant_name=restaurant.name,
            )
        )

    await db.commit()
    return await get_cart(db, user_id)


async def update_item(db: AsyncSession, user_id: str, food_item_id: str, quantity: int) -> CartRead:
    """
    Меняет количество; 0 и меньше убирают позицию из корзины.
    """
    cart = await get_cart_model(db, user_id)
    if cart is None:
        raise NotFound("Cart not found")

    line = next((item for item in cart.items if item.food_item_id == food_item_id), None)
    if line is None:
        raise NotFound("Item not found in cart")

    if quantity <= 0:
        cart.items.remove(line)
    else:
        line.quantity = quantity

    await db.commit()
    return await get_cart(db, user_id)


async def remove_item(db: AsyncSession, user_id: str, food_item_id: str) -> CartRead:
    cart = await get_cart_model(db, user_id)
    if cart is None:
        raise NotFound("Cart not found")

    cart.items = [item for item in cart.items if item.food_item_id != food_item_id]
    await db.commit()
    return await get_cart(db, user_id)


async def clear_cart(db: AsyncSession, user_id: str) -> None:
    """
    Удаляет корзину целиком. Коммит делает вызывающий код.
    """
    await db.execute(delete(CartItem).where(CartItem.user_id == user_id))
    await db.execute(delete(Cart).where(Cart.user_id == user_id))

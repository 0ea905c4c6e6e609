from .restaurant import Restaurant
from .menu_item import MenuItem
from .item_rating import ItemRating
from .cart import Cart, CartItem
from .order import Order, OrderStatusEnum, OrderTypeEnum
from .order_item import OrderItem

__all__ = [
    "Restaurant",
    "MenuItem",
    "ItemRating",
    "Cart",
    "CartItem",
    "Order",
    "OrderStatusEnum",
    "OrderTypeEnum",
    "OrderItem",
]

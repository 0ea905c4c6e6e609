from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey, func
from sqlalchemy.orm import relationship
from ..db.base import Base


class Cart(Base):
    __tablename__ = "carts"

    user_id = Column(String(64), primary_key=True)  # одна корзина на покупателя
    restaurant_id = Column(String(32), ForeignKey("restaurants.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    items = relationship("CartItem", back_populates="cart", cascade="all, delete-orphan", order_by="CartItem.id")


class CartItem(Base):
    __tablename__ = "cart_items"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), ForeignKey("carts.user_id", ondelete="CASCADE"), nullable=False)
    food_item_id = Column(String(48), nullable=False)
    name = Column(String(128), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    takeaway_price = Column(Numeric(10, 2), nullable=False, default=0)
    quantity = Column(Integer, nullable=False, default=1)
    image = Column(String(512), nullable=True)
    restaurant_name = Column(String(128), nullable=False)

    cart = relationship("Cart", back_populates="items")

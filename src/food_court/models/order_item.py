from sqlalchemy import Column, Integer, String, Numeric, ForeignKey
from sqlalchemy.orm import relationship
from ..db.base import Base


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(String(32), ForeignKey("orders.order_id", ondelete="CASCADE"), nullable=False, index=True)
    # снимок позиции меню на момент заказа
    food_item_id = Column(String(48), nullable=False)
    name = Column(String(128), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    image = Column(String(512), nullable=True)
    restaurant_name = Column(String(128), nullable=False)

    # связи
    order = relationship("Order", back_populates="items")

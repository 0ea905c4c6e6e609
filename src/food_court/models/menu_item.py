from sqlalchemy import Column, Integer, String, Numeric, Boolean, DateTime, ForeignKey, Text, func
from sqlalchemy.orm import relationship
from ..db.base import Base


class MenuItem(Base):
    __tablename__ = "menu_items"

    id = Column(String(48), primary_key=True)  # <restaurant_id>-FI001
    restaurant_id = Column(String(32), ForeignKey("restaurants.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(128), nullable=False)
    description = Column(Text, nullable=True)
    image = Column(String(512), nullable=True)
    category = Column(String(64), nullable=True)
    dinein_price = Column(Numeric(10, 2), nullable=False)
    takeaway_price = Column(Numeric(10, 2), nullable=False, default=0)  # надбавка к dinein_price, не замена
    is_veg = Column(Boolean, default=True, nullable=False)
    is_available = Column(Boolean, default=True, nullable=False)

    rating = Column(Numeric(3, 2), default=0, nullable=False)
    ratings_count = Column(Integer, default=0, nullable=False)
    total_orders = Column(Integer, default=0, nullable=False)
    total_revenue = Column(Numeric(12, 2), default=0, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # связи
    restaurant = relationship("Restaurant", back_populates="menu_items")
    ratings = relationship("ItemRating", back_populates="menu_item", cascade="all, delete-orphan")

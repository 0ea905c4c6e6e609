from sqlalchemy import Column, Integer, String, Numeric, Boolean, DateTime, func
from sqlalchemy.orm import relationship
from ..db.base import Base


class Restaurant(Base):
    __tablename__ = "restaurants"

    id = Column(String(32), primary_key=True)  # R001, R002 ...
    name = Column(String(128), nullable=False)
    address = Column(String(255), nullable=True)
    phone = Column(String(20), nullable=True)
    availability = Column(Boolean, default=True, nullable=False)

    # агрегаты: меняются только расчётом при завершении заказа и рейтингами
    order_count = Column(Integer, default=0, nullable=False)
    total_revenue = Column(Numeric(12, 2), default=0, nullable=False)
    rating = Column(Numeric(3, 2), default=0, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    menu_items = relationship("MenuItem", back_populates="restaurant", cascade="all, delete-orphan")

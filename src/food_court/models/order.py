import enum
from sqlalchemy import Column, Integer, String, Numeric, Boolean, DateTime, ForeignKey, Enum as SAEnum, func
from sqlalchemy.orm import relationship
from ..db.base import Base


class OrderStatusEnum(str, enum.Enum):
    pending = "pending"
    confirmed = "confirmed"
    preparing = "preparing"
    ready = "ready"
    completed = "completed"
    cancelled = "cancelled"


class OrderTypeEnum(str, enum.Enum):
    dining = "dining"
    takeaway = "takeaway"


class Order(Base):
    __tablename__ = "orders"

    order_id = Column(String(32), primary_key=True)
    user_id = Column(String(64), nullable=False, index=True)
    restaurant_id = Column(String(32), ForeignKey("restaurants.id"), nullable=False, index=True)
    order_type = Column(SAEnum(OrderTypeEnum, name="order_type"), nullable=False)
    subtotal = Column(Numeric(10, 2), nullable=False)
    service_charge = Column(Numeric(10, 2), nullable=False, default=0)
    total = Column(Numeric(10, 2), nullable=False)
    status = Column(SAEnum(OrderStatusEnum, name="order_status"), nullable=False, default=OrderStatusEnum.pending)
    otp = Column(String(4), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    confirmed_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    estimated_time = Column(Integer, nullable=False, default=0)  # минут осталось
    has_rated = Column(Boolean, nullable=False, default=False)

    # связи
    restaurant = relationship("Restaurant")
    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan", order_by="OrderItem.id")

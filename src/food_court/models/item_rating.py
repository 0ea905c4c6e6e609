from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import relationship
from ..db.base import Base


class ItemRating(Base):
    __tablename__ = "item_ratings"
    __table_args__ = (
        UniqueConstraint("food_item_id", "user_id", "order_id", name="uq_item_rating_user_order"),
    )

    id = Column(Integer, primary_key=True, index=True)
    food_item_id = Column(String(48), ForeignKey("menu_items.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(64), nullable=False)
    order_id = Column(String(32), ForeignKey("orders.order_id"), nullable=False)
    rating = Column(Integer, nullable=False)  # 1..5
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    menu_item = relationship("MenuItem", back_populates="ratings")

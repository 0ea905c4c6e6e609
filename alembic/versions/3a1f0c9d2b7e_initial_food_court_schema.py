"""initial food court schema

Revision ID: 3a1f0c9d2b7e
Revises:
Create Date: 2026-10-19 12:00:00.000000

"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3a1f0c9d2b7e"
down_revision = None
branch_labels = None
depends_on = None

ORDER_STATUS = ("pending", "confirmed", "preparing", "ready", "completed", "cancelled")
ORDER_TYPE = ("dining", "takeaway")


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "restaurants",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("address", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(20), nullable=True),
        sa.Column("availability", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("order_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("total_revenue", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("rating", sa.Numeric(3, 2), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        "menu_items",
        sa.Column("id", sa.String(48), primary_key=True),
        sa.Column("restaurant_id", sa.String(32), sa.ForeignKey("restaurants.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("image", sa.String(512), nullable=True),
        sa.Column("category", sa.String(64), nullable=True),
        sa.Column("dinein_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("takeaway_price", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("is_veg", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("is_available", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("rating", sa.Numeric(3, 2), nullable=False, server_default="0"),
        sa.Column("ratings_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("total_orders", sa.Integer, nullable=False, server_default="0"),
        sa.Column("total_revenue", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_menu_items_restaurant_id", "menu_items", ["restaurant_id"])

    op.create_table(
        "orders",
        sa.Column("order_id", sa.String(32), primary_key=True),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("restaurant_id", sa.String(32), sa.ForeignKey("restaurants.id"), nullable=False),
        sa.Column("order_type", sa.Enum(*ORDER_TYPE, name="order_type"), nullable=False),
        sa.Column("subtotal", sa.Numeric(10, 2), nullable=False),
        sa.Column("service_charge", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("total", sa.Numeric(10, 2), nullable=False),
        sa.Column("status", sa.Enum(*ORDER_STATUS, name="order_status"), nullable=False, server_default="pending"),
        sa.Column("otp", sa.String(4), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("confirmed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("estimated_time", sa.Integer, nullable=False, server_default="0"),
        sa.Column("has_rated", sa.Boolean, nullable=False, server_default=sa.false()),
    )
    op.create_index("ix_orders_user_id", "orders", ["user_id"])
    op.create_index("ix_orders_restaurant_id", "orders", ["restaurant_id"])

    op.create_table(
        "order_items",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("order_id", sa.String(32), sa.ForeignKey("orders.order_id", ondelete="CASCADE"), nullable=False),
        sa.Column("food_item_id", sa.String(48), nullable=False),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("quantity", sa.Integer, nullable=False, server_default="1"),
        sa.Column("image", sa.String(512), nullable=True),
        sa.Column("restaurant_name", sa.String(128), nullable=False),
    )
    op.create_index("ix_order_items_id", "order_items", ["id"])
    op.create_index("ix_order_items_order_id", "order_items", ["order_id"])

    op.create_table(
        "item_ratings",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("food_item_id", sa.String(48), sa.ForeignKey("menu_items.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("order_id", sa.String(32), sa.ForeignKey("orders.order_id"), nullable=False),
        sa.Column("rating", sa.Integer, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("food_item_id", "user_id", "order_id", name="uq_item_rating_user_order"),
    )
    op.create_index("ix_item_ratings_id", "item_ratings", ["id"])
    op.create_index("ix_item_ratings_food_item_id", "item_ratings", ["food_item_id"])

    op.create_table(
        "carts",
        sa.Column("user_id", sa.String(64), primary_key=True),
        sa.Column("restaurant_id", sa.String(32), sa.ForeignKey("restaurants.id"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        "cart_items",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("user_id", sa.String(64), sa.ForeignKey("carts.user_id", ondelete="CASCADE"), nullable=False),
        sa.Column("food_item_id", sa.String(48), nullable=False),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("takeaway_price", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("quantity", sa.Integer, nullable=False, server_default="1"),
        sa.Column("image", sa.String(512), nullable=True),
        sa.Column("restaurant_name", sa.String(128), nullable=False),
    )
    op.create_index("ix_cart_items_id", "cart_items", ["id"])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table("cart_items")
    op.drop_table("carts")
    op.drop_table("item_ratings")
    op.drop_table("order_items")
    op.drop_table("orders")
    op.drop_table("menu_items")
    op.drop_table("restaurants")
    op.execute("DROP TYPE IF EXISTS order_status")
    op.execute("DROP TYPE IF EXISTS order_type")

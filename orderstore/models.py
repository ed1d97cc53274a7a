"""SQLAlchemy tables for orders and their line items.

``orders`` holds one header row per checkout, keyed by the externally
generated order id. ``order_items`` holds the lines, keyed by a synthetic id
and removed together with their order through ``ON DELETE CASCADE``.
"""

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, Numeric, String, func
from sqlalchemy.orm import DeclarativeBase, mapped_column


class Base(DeclarativeBase):
    pass


class OrderRecord(Base):
    """Order header row.

    Attributes:
        order_id: Externally generated identifier (primary key).
        user_id: Owning customer.
        credit_card_number_masked: Output of ``mask_credit_card``; the full
            number is never stored.
        order_total: Total as a decimal with two fractional digits.
        created_at: Write time assigned by the store.
    """

    __tablename__ = "orders"

    order_id = mapped_column(String(50), primary_key=True)
    user_id = mapped_column(String(50), nullable=False)
    email = mapped_column(String(255))
    street_address = mapped_column(String(500))
    city = mapped_column(String(100))
    state = mapped_column(String(100))
    country = mapped_column(String(100))
    zip_code = mapped_column(String(20))
    credit_card_number_masked = mapped_column(String(25))
    credit_card_cvv = mapped_column(String(4))
    credit_card_exp_month = mapped_column(Integer)
    credit_card_exp_year = mapped_column(Integer)
    order_total = mapped_column(Numeric(10, 2))
    currency_code = mapped_column(String(3))
    shipping_tracking_id = mapped_column(String(100))
    created_at = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        Index("idx_orders_user_id", "user_id"),
        Index("idx_orders_created_at", "created_at"),
    )


class OrderItemRecord(Base):
    """Order line row."""

    __tablename__ = "order_items"

    id = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id = mapped_column(
        String(50), ForeignKey("orders.order_id", ondelete="CASCADE"), nullable=False
    )
    product_id = mapped_column(String(50), nullable=False)
    quantity = mapped_column(Integer, nullable=False)

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_order_items_quantity_positive"),
        Index("idx_order_items_order_id", "order_id"),
    )

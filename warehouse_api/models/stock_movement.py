from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from warehouse_api.core.id_utils import generate_uuid
from warehouse_api.db.base import Base

MOVEMENT_TYPES = ("in", "out", "adjustment")
# Upper bound of the 32-bit INTEGER columns holding quantities and balances.
MAX_QUANTITY = 2_147_483_647


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StockMovement(Base):
    """
    One append-only row per stock change. ``quantity`` is always the positive
    magnitude; ``qty_delta`` is the signed change applied to the product balance,
    so a product's current_stock equals the sum of its movements' qty_delta.
    """
    __tablename__ = "stock_movements"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    product_id: Mapped[str] = mapped_column(String(36), ForeignKey("products.id"), nullable=False, index=True)

    movement_type: Mapped[str] = mapped_column(String(20), nullable=False)  # "in", "out", "adjustment"
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    qty_delta: Mapped[int] = mapped_column(Integer, nullable=False)
    reference_number: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)  # e.g., PO / delivery note
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_by: Mapped[str] = mapped_column(String(50), nullable=False)

    # Set client-side so insertion order survives second-resolution server clocks.
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_stock_movements_quantity_positive"),
        CheckConstraint(
            "movement_type IN ('in', 'out', 'adjustment')",
            name="ck_stock_movements_movement_type",
        ),
        Index("ix_stock_movements_created_at", "created_at"),
        Index("ix_stock_movements_product_created_at", "product_id", "created_at"),
    )

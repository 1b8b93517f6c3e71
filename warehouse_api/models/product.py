from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Index, Integer, Numeric, String, Text, func
from sqlalchemy.ext.hybrid import hybrid_property
from sqlalchemy.orm import Mapped, mapped_column

from warehouse_api.core.id_utils import generate_uuid
from warehouse_api.db.base import Base


class Product(Base):
    __tablename__ = "products"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    sku: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    category_id: Mapped[Optional[str]] = mapped_column(String(36), ForeignKey("categories.id"), nullable=True, index=True)

    # Written only by warehouse_api.services.stock_ledger; read through current_stock.
    _current_stock: Mapped[int] = mapped_column(
        "current_stock", Integer, nullable=False, default=0, server_default="0"
    )
    min_stock: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    max_stock: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    unit_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0.00"), server_default="0")
    expiration_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    # Informational placement only; not part of the ledger.
    location_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("warehouse_locations.id"), nullable=True, index=True
    )
    manual_row: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    manual_column: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="1")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    __table_args__ = (
        Index("ix_products_created_at", "created_at"),
        Index("ix_products_expiration_date", "expiration_date"),
    )

    @hybrid_property
    def current_stock(self) -> int:
        return self._current_stock

from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from warehouse_api.core.id_utils import generate_uuid
from warehouse_api.db.base import Base


class WarehouseArea(Base):
    """A rectangle on the warehouse floor plan (storage area, aisle, door, office)."""

    __tablename__ = "warehouse_areas"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False, default="area", server_default="area")
    x: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    y: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    width: Mapped[int] = mapped_column(Integer, nullable=False, default=100, server_default="100")
    height: Mapped[int] = mapped_column(Integer, nullable=False, default=100, server_default="100")
    color: Mapped[str] = mapped_column(String(20), nullable=False, default="#3b82f6", server_default="#3b82f6")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="1")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("ix_warehouse_areas_active_name", "is_active", "name"),
    )


class WarehouseLocation(Base):
    __tablename__ = "warehouse_locations"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    area_id: Mapped[str] = mapped_column(String(36), ForeignKey("warehouse_areas.id"), nullable=False, index=True)
    row_number: Mapped[int] = mapped_column(Integer, nullable=False)
    column_number: Mapped[int] = mapped_column(Integer, nullable=False)
    location_code: Mapped[str] = mapped_column(String(30), nullable=False, unique=True)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=100, server_default="100")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from warehouse_api.models.stock_movement import MAX_QUANTITY
from warehouse_api.schemas.common import PaginationMeta


class StockMovementCreate(BaseModel):
    product_id: str
    movement_type: str = Field(..., description="One of: in, out, adjustment.")
    quantity: int = Field(
        ...,
        gt=0,
        le=MAX_QUANTITY,
        description="Units moved for in/out. For adjustment: the stock level to set.",
    )
    reference_number: Optional[str] = Field(default=None, max_length=100)
    notes: Optional[str] = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "product_id": "product-id-here",
                "movement_type": "out",
                "quantity": 5,
                "reference_number": "DN-2026-0042",
                "notes": "Picked for order 1182",
            }
        }
    )


class StockMovementCreatedOut(BaseModel):
    id: str
    message: str = "Stock movement recorded successfully"
    product_id: str
    movement_type: str
    quantity: int
    new_balance: int


class StockMovementReversedOut(BaseModel):
    message: str = "Stock movement deleted and stock adjusted"
    product_id: str
    new_balance: int


class StockMovementOut(BaseModel):
    id: str
    product_id: str
    product_name: Optional[str] = None
    product_sku: Optional[str] = None
    category_name: Optional[str] = None
    movement_type: str
    quantity: int
    qty_delta: int
    reference_number: Optional[str] = None
    notes: Optional[str] = None
    created_by: str
    created_at: datetime


class StockMovementListOut(BaseModel):
    movements: list[StockMovementOut]
    pagination: PaginationMeta


class MovementTypeStatOut(BaseModel):
    movement_type: str
    count: int
    total_quantity: int


class MovementTrendOut(BaseModel):
    date: date
    movement_type: str
    count: int
    total_quantity: int


class TopMovedProductOut(BaseModel):
    id: str
    name: str
    sku: str
    movement_count: int
    total_in: int
    total_out: int


class StockMovementStatsOut(BaseModel):
    stats: list[MovementTypeStatOut]
    trends: list[MovementTrendOut]
    top_products: list[TopMovedProductOut]

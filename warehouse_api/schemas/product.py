from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from warehouse_api.models.stock_movement import MAX_QUANTITY


class ProductBase(BaseModel):
    name: str
    description: Optional[str] = None
    category_id: Optional[str] = None
    min_stock: int = Field(default=0, ge=0)
    max_stock: int = Field(default=0, ge=0)
    unit_price: Decimal = Field(default=Decimal("0"), ge=0)
    expiration_date: Optional[date] = None
    location_id: Optional[str] = None
    manual_row: Optional[int] = Field(default=None, ge=0)
    manual_column: Optional[int] = Field(default=None, ge=0)

    @model_validator(mode="before")
    @classmethod
    def reject_stock_level(cls, data: Any) -> Any:
        if isinstance(data, dict) and "current_stock" in data:
            raise ValueError("current_stock can only change through stock movements")
        return data

    @field_validator(
        "description",
        "category_id",
        "location_id",
        "expiration_date",
        "manual_row",
        "manual_column",
        mode="before",
    )
    @classmethod
    def blank_to_none(cls, value: Any) -> Any:
        # Browser forms submit untouched inputs as empty strings.
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("name is required")
        return cleaned

    @model_validator(mode="after")
    def validate_stock_thresholds(self) -> "ProductBase":
        if self.max_stock and self.min_stock > self.max_stock:
            raise ValueError("min_stock cannot exceed max_stock")
        return self


class ProductCreate(ProductBase):
    sku: str

    @field_validator("sku")
    @classmethod
    def validate_sku(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("sku is required")
        return cleaned

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "name": "Pallet Wrap 500mm",
                "sku": "PW-500",
                "description": "Cast stretch film, 23 micron",
                "category_id": None,
                "min_stock": 10,
                "max_stock": 200,
                "unit_price": 12.5,
                "expiration_date": None,
                "location_id": None,
            }
        }
    )


class ProductUpdate(ProductBase):
    sku: Optional[str] = Field(default=None, description="SKU is immutable; when sent it must match.")
    is_active: Optional[bool] = None


class ProductOut(BaseModel):
    id: str
    sku: str
    name: str
    description: Optional[str] = None
    category_id: Optional[str] = None
    category_name: Optional[str] = None
    current_stock: int
    min_stock: int
    max_stock: int
    unit_price: float
    expiration_date: Optional[date] = None
    location_id: Optional[str] = None
    location_code: Optional[str] = None
    area_id: Optional[str] = None
    area_name: Optional[str] = None
    manual_row: Optional[int] = None
    manual_column: Optional[int] = None
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProductBalanceOut(BaseModel):
    product_id: str
    current_stock: int


class ProductStockIn(BaseModel):
    quantity: int = Field(gt=0, le=MAX_QUANTITY)
    movement_type: str = "in"
    reference_number: Optional[str] = Field(default=None, max_length=100)
    notes: Optional[str] = None


class ProductDeleteOut(BaseModel):
    message: str
    deleted_movements: int

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

AreaType = Literal["area", "aisle", "door", "office"]


class WarehouseAreaIn(BaseModel):
    name: str
    type: AreaType = "area"
    x: int = 0
    y: int = 0
    width: int = Field(default=100, gt=0)
    height: int = Field(default=100, gt=0)
    color: str = Field(default="#3b82f6", pattern=r"^#[0-9a-fA-F]{6}$")

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("name is required")
        return cleaned

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "name": "Cold Storage",
                "type": "area",
                "x": 40,
                "y": 60,
                "width": 240,
                "height": 160,
                "color": "#10b981",
            }
        }
    )


class WarehouseAreaOut(BaseModel):
    id: str
    name: str
    type: str
    x: int
    y: int
    width: int
    height: int
    color: str
    is_active: bool
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class WarehouseAreaDeleteOut(BaseModel):
    message: str
    deleted_locations: int


class WarehouseLocationIn(BaseModel):
    area_id: str
    row_number: int = Field(ge=0)
    column_number: int = Field(ge=0)
    location_code: str
    capacity: Optional[int] = Field(default=None, gt=0)

    @field_validator("location_code")
    @classmethod
    def validate_location_code(cls, value: str) -> str:
        cleaned = value.strip().upper()
        if not cleaned:
            raise ValueError("location_code is required")
        return cleaned

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "area_id": "area-id-here",
                "row_number": 1,
                "column_number": 3,
                "location_code": "A-01-03",
                "capacity": 100,
            }
        }
    )


class WarehouseLocationOut(BaseModel):
    id: str
    area_id: str
    area_name: Optional[str] = None
    area_color: Optional[str] = None
    row_number: int
    column_number: int
    location_code: str
    capacity: int
    is_occupied: bool = False
    product_id: Optional[str] = None
    product_name: Optional[str] = None
    sku: Optional[str] = None
    current_stock: Optional[int] = None
    created_at: Optional[datetime] = None

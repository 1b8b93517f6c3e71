from datetime import date
from typing import Optional

from pydantic import BaseModel

from warehouse_api.schemas.warehouse import WarehouseAreaOut, WarehouseLocationOut


class ReportTypeOut(BaseModel):
    id: str
    name: str
    description: str
    format: str


class StockReportRowOut(BaseModel):
    id: str
    sku: str
    name: str
    category: Optional[str] = None
    location_code: Optional[str] = None
    area_name: Optional[str] = None
    current_stock: int
    min_stock: int
    max_stock: int
    unit_price: float
    total_value: float
    expiration_date: Optional[date] = None
    stock_status: str
    expiry_status: str


class StockReportSummaryOut(BaseModel):
    total_products: int
    out_of_stock: int
    low_stock: int
    in_stock: int
    near_expiry: int
    expired: int
    total_stock_value: float


class StockReportOut(BaseModel):
    generated_on: date
    summary: StockReportSummaryOut
    items: list[StockReportRowOut]


class NearExpiryRowOut(BaseModel):
    id: str
    sku: str
    name: str
    category: Optional[str] = None
    location_code: Optional[str] = None
    area_name: Optional[str] = None
    current_stock: int
    expiration_date: date
    unit_price: float
    stock_value: float
    days_until_expiry: int
    expiry_status: str


class NearExpirySummaryOut(BaseModel):
    expired: int
    within_30_days: int
    within_90_days: int
    total: int
    total_stock_value: float


class NearExpiryReportOut(BaseModel):
    generated_on: date
    months: int
    cutoff_date: date
    summary: NearExpirySummaryOut
    items: list[NearExpiryRowOut]


class LayoutAreaOut(WarehouseAreaOut):
    total_locations: int
    occupied_locations: int
    locations: list[WarehouseLocationOut]


class WarehouseLayoutReportOut(BaseModel):
    generated_on: date
    areas: list[LayoutAreaOut]

from pydantic import BaseModel

from warehouse_api.schemas.stock_movement import StockMovementOut


class CategoryStockOut(BaseModel):
    category_name: str
    product_count: int
    total_stock: int


class AreaUtilizationOut(BaseModel):
    area_name: str
    total_locations: int
    used_locations: int
    utilization_percentage: float | None = None


class DashboardStatsOut(BaseModel):
    total_products: int
    total_value: float
    low_stock: int
    out_of_stock: int
    recent_movements: list[StockMovementOut]
    stock_by_category: list[CategoryStockOut]
    warehouse_utilization: list[AreaUtilizationOut]

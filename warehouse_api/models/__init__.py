from warehouse_api.models.user import User
from warehouse_api.models.category import Category
from warehouse_api.models.warehouse import WarehouseArea, WarehouseLocation
from warehouse_api.models.product import Product
from warehouse_api.models.stock_movement import StockMovement

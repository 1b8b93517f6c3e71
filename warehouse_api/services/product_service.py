from sqlalchemy import Select, select
from sqlalchemy.orm import Session

from warehouse_api.models.category import Category
from warehouse_api.models.product import Product
from warehouse_api.models.warehouse import WarehouseArea, WarehouseLocation
from warehouse_api.schemas.product import ProductOut


def product_listing_stmt() -> Select:
    """Products joined with their category, location and area names."""
    return (
        select(
            Product,
            Category.name.label("category_name"),
            WarehouseLocation.location_code.label("location_code"),
            WarehouseArea.id.label("area_id"),
            WarehouseArea.name.label("area_name"),
        )
        .outerjoin(Category, Category.id == Product.category_id)
        .outerjoin(WarehouseLocation, WarehouseLocation.id == Product.location_id)
        .outerjoin(WarehouseArea, WarehouseArea.id == WarehouseLocation.area_id)
    )


def product_out(row) -> ProductOut:
    product: Product = row[0]
    return ProductOut(
        id=product.id,
        sku=product.sku,
        name=product.name,
        description=product.description,
        category_id=product.category_id,
        category_name=row.category_name,
        current_stock=product.current_stock,
        min_stock=product.min_stock,
        max_stock=product.max_stock,
        unit_price=float(product.unit_price or 0),
        expiration_date=product.expiration_date,
        location_id=product.location_id,
        location_code=row.location_code,
        area_id=row.area_id,
        area_name=row.area_name,
        manual_row=product.manual_row,
        manual_column=product.manual_column,
        is_active=bool(product.is_active),
        created_at=product.created_at,
        updated_at=product.updated_at,
    )


def list_products(db: Session, *, active_only: bool = False, category_id: str | None = None) -> list[ProductOut]:
    stmt = product_listing_stmt()
    if active_only:
        stmt = stmt.where(Product.is_active.is_(True))
    if category_id:
        stmt = stmt.where(Product.category_id == category_id)
    rows = db.execute(stmt.order_by(Product.created_at.desc(), Product.name.asc())).all()
    return [product_out(row) for row in rows]


def get_product_out(db: Session, product_id: str) -> ProductOut | None:
    row = db.execute(product_listing_stmt().where(Product.id == product_id)).first()
    if row is None:
        return None
    return product_out(row)

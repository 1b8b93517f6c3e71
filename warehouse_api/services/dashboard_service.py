from sqlalchemy import func, select
from sqlalchemy.orm import Session

from warehouse_api.core.config import settings
from warehouse_api.core.money import ZERO_MONEY, to_money
from warehouse_api.models.category import Category
from warehouse_api.models.product import Product
from warehouse_api.schemas.dashboard import CategoryStockOut, DashboardStatsOut
from warehouse_api.services.movement_service import movement_listing_stmt, movement_out
from warehouse_api.services.warehouse_service import area_utilization


def get_stats(db: Session) -> DashboardStatsOut:
    total_products = int(db.execute(select(func.count(Product.id))).scalar_one())
    total_value = (
        db.execute(
            select(func.coalesce(func.sum(Product.current_stock * Product.unit_price), 0))
        ).scalar_one()
        or ZERO_MONEY
    )
    low_stock = int(
        db.execute(
            select(func.count(Product.id)).where(Product.current_stock <= Product.min_stock)
        ).scalar_one()
    )
    out_of_stock = int(
        db.execute(select(func.count(Product.id)).where(Product.current_stock == 0)).scalar_one()
    )

    recent_rows = db.execute(
        movement_listing_stmt().limit(settings.recent_movements_limit)
    ).all()

    category_rows = db.execute(
        select(
            Category.name,
            func.count(Product.id),
            func.coalesce(func.sum(Product.current_stock), 0),
        )
        .outerjoin(Product, Product.category_id == Category.id)
        .group_by(Category.id, Category.name)
        .order_by(func.coalesce(func.sum(Product.current_stock), 0).desc(), Category.name.asc())
    ).all()

    return DashboardStatsOut(
        total_products=total_products,
        total_value=float(to_money(total_value)),
        low_stock=low_stock,
        out_of_stock=out_of_stock,
        recent_movements=[movement_out(row) for row in recent_rows],
        stock_by_category=[
            CategoryStockOut(
                category_name=name,
                product_count=int(product_count or 0),
                total_stock=int(total_stock or 0),
            )
            for name, product_count, total_stock in category_rows
        ],
        warehouse_utilization=area_utilization(db),
    )

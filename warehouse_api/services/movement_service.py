from datetime import date, datetime, timedelta, timezone

from sqlalchemy import Select, case, func, select
from sqlalchemy.orm import Session

from warehouse_api.models.category import Category
from warehouse_api.models.product import Product
from warehouse_api.models.stock_movement import StockMovement
from warehouse_api.schemas.common import PaginationMeta
from warehouse_api.schemas.stock_movement import (
    MovementTrendOut,
    MovementTypeStatOut,
    StockMovementListOut,
    StockMovementOut,
    StockMovementStatsOut,
    TopMovedProductOut,
)

TREND_WINDOW_DAYS = 30
TOP_PRODUCTS_LIMIT = 10


def movement_listing_stmt() -> Select:
    """Movements newest first, joined with product and category names."""
    return (
        select(
            StockMovement,
            Product.name.label("product_name"),
            Product.sku.label("product_sku"),
            Category.name.label("category_name"),
        )
        .join(Product, Product.id == StockMovement.product_id)
        .outerjoin(Category, Category.id == Product.category_id)
        .order_by(StockMovement.created_at.desc(), StockMovement.id.desc())
    )


def movement_out(row) -> StockMovementOut:
    movement: StockMovement = row[0]
    return StockMovementOut(
        id=movement.id,
        product_id=movement.product_id,
        product_name=row.product_name,
        product_sku=row.product_sku,
        category_name=row.category_name,
        movement_type=movement.movement_type,
        quantity=movement.quantity,
        qty_delta=movement.qty_delta,
        reference_number=movement.reference_number,
        notes=movement.notes,
        created_by=movement.created_by,
        created_at=movement.created_at,
    )


def _apply_date_range(stmt: Select, start_date: date | None, end_date: date | None) -> Select:
    if start_date:
        stmt = stmt.where(func.date(StockMovement.created_at) >= start_date)
    if end_date:
        stmt = stmt.where(func.date(StockMovement.created_at) <= end_date)
    return stmt


def list_movements(
    db: Session,
    *,
    page: int,
    limit: int,
    product_id: str | None = None,
    movement_type: str | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
) -> StockMovementListOut:
    stmt = movement_listing_stmt()
    count_stmt = select(func.count(StockMovement.id))
    if product_id:
        stmt = stmt.where(StockMovement.product_id == product_id)
        count_stmt = count_stmt.where(StockMovement.product_id == product_id)
    if movement_type:
        stmt = stmt.where(StockMovement.movement_type == movement_type)
        count_stmt = count_stmt.where(StockMovement.movement_type == movement_type)
    stmt = _apply_date_range(stmt, start_date, end_date)
    count_stmt = _apply_date_range(count_stmt, start_date, end_date)

    total = int(db.execute(count_stmt).scalar_one())
    rows = db.execute(stmt.offset((page - 1) * limit).limit(limit)).all()
    return StockMovementListOut(
        movements=[movement_out(row) for row in rows],
        pagination=PaginationMeta.build(total=total, page=page, per_page=limit),
    )


def list_product_movements(db: Session, product_id: str) -> list[StockMovementOut]:
    rows = db.execute(movement_listing_stmt().where(StockMovement.product_id == product_id)).all()
    return [movement_out(row) for row in rows]


def get_stats(
    db: Session,
    start_date: date | None = None,
    end_date: date | None = None,
) -> StockMovementStatsOut:
    stats_stmt = _apply_date_range(
        select(
            StockMovement.movement_type,
            func.count(StockMovement.id),
            func.coalesce(func.sum(StockMovement.quantity), 0),
        ).group_by(StockMovement.movement_type),
        start_date,
        end_date,
    )
    stats = [
        MovementTypeStatOut(
            movement_type=movement_type,
            count=int(count),
            total_quantity=int(total_quantity or 0),
        )
        for movement_type, count, total_quantity in db.execute(
            stats_stmt.order_by(StockMovement.movement_type.asc())
        ).all()
    ]

    # Trends always cover the trailing window regardless of the requested range.
    trend_since = datetime.now(timezone.utc) - timedelta(days=TREND_WINDOW_DAYS)
    trend_day = func.date(StockMovement.created_at)
    trend_rows = db.execute(
        select(
            trend_day,
            StockMovement.movement_type,
            func.count(StockMovement.id),
            func.coalesce(func.sum(StockMovement.quantity), 0),
        )
        .where(StockMovement.created_at >= trend_since)
        .group_by(trend_day, StockMovement.movement_type)
        .order_by(trend_day.desc(), StockMovement.movement_type.asc())
    ).all()
    trends = [
        MovementTrendOut(
            date=day,
            movement_type=movement_type,
            count=int(count),
            total_quantity=int(total_quantity or 0),
        )
        for day, movement_type, count, total_quantity in trend_rows
    ]

    movement_count = func.count(StockMovement.id)
    top_stmt = _apply_date_range(
        select(
            Product.id,
            Product.name,
            Product.sku,
            movement_count,
            func.coalesce(
                func.sum(case((StockMovement.movement_type == "in", StockMovement.quantity), else_=0)), 0
            ),
            func.coalesce(
                func.sum(case((StockMovement.movement_type == "out", StockMovement.quantity), else_=0)), 0
            ),
        )
        .join(StockMovement, StockMovement.product_id == Product.id)
        .group_by(Product.id, Product.name, Product.sku),
        start_date,
        end_date,
    )
    top_products = [
        TopMovedProductOut(
            id=product_id,
            name=name,
            sku=sku,
            movement_count=int(count),
            total_in=int(total_in or 0),
            total_out=int(total_out or 0),
        )
        for product_id, name, sku, count, total_in, total_out in db.execute(
            top_stmt.order_by(movement_count.desc(), Product.name.asc()).limit(TOP_PRODUCTS_LIMIT)
        ).all()
    ]

    return StockMovementStatsOut(stats=stats, trends=trends, top_products=top_products)

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from warehouse_api.models.product import Product
from warehouse_api.models.warehouse import WarehouseArea, WarehouseLocation
from warehouse_api.schemas.dashboard import AreaUtilizationOut
from warehouse_api.schemas.warehouse import WarehouseLocationOut


def occupied_location_ids(db: Session) -> set[str]:
    rows = db.execute(
        select(Product.location_id).where(Product.location_id.is_not(None)).distinct()
    ).scalars().all()
    return set(rows)


def location_product_count(db: Session, location_ids: list[str]) -> int:
    if not location_ids:
        return 0
    return int(
        db.execute(
            select(func.count(Product.id)).where(Product.location_id.in_(location_ids))
        ).scalar_one()
    )


def list_location_rows(
    db: Session,
    *,
    area_id: str | None = None,
    location_id: str | None = None,
) -> list[WarehouseLocationOut]:
    """
    Locations with their area and, when occupied, the product placed there.

    Occupancy is derived from products.location_id. If several products share a
    location the first one by name is reported.
    """
    stmt = (
        select(
            WarehouseLocation,
            WarehouseArea.name.label("area_name"),
            WarehouseArea.color.label("area_color"),
        )
        .join(WarehouseArea, WarehouseArea.id == WarehouseLocation.area_id)
        .order_by(WarehouseArea.name.asc(), WarehouseLocation.row_number.asc(), WarehouseLocation.column_number.asc())
    )
    if area_id:
        stmt = stmt.where(WarehouseLocation.area_id == area_id)
    if location_id:
        stmt = stmt.where(WarehouseLocation.id == location_id)
    rows = db.execute(stmt).all()

    location_ids = [row[0].id for row in rows]
    placed: dict[str, Product] = {}
    if location_ids:
        products = db.execute(
            select(Product)
            .where(Product.location_id.in_(location_ids))
            .order_by(Product.name.asc())
        ).scalars().all()
        for product in products:
            placed.setdefault(product.location_id, product)

    items = []
    for row in rows:
        location: WarehouseLocation = row[0]
        product = placed.get(location.id)
        items.append(
            WarehouseLocationOut(
                id=location.id,
                area_id=location.area_id,
                area_name=row.area_name,
                area_color=row.area_color,
                row_number=location.row_number,
                column_number=location.column_number,
                location_code=location.location_code,
                capacity=location.capacity,
                is_occupied=product is not None,
                product_id=product.id if product else None,
                product_name=product.name if product else None,
                sku=product.sku if product else None,
                current_stock=product.current_stock if product else None,
                created_at=location.created_at,
            )
        )
    return items


def area_utilization(db: Session) -> list[AreaUtilizationOut]:
    occupied = occupied_location_ids(db)
    areas = db.execute(select(WarehouseArea).order_by(WarehouseArea.name.asc())).scalars().all()
    location_rows = db.execute(select(WarehouseLocation.id, WarehouseLocation.area_id)).all()

    per_area: dict[str, list[str]] = {}
    for location_id, area_id in location_rows:
        per_area.setdefault(area_id, []).append(location_id)

    items = []
    for area in areas:
        location_ids = per_area.get(area.id, [])
        total = len(location_ids)
        used = sum(1 for location_id in location_ids if location_id in occupied)
        items.append(
            AreaUtilizationOut(
                area_name=area.name,
                total_locations=total,
                used_locations=used,
                utilization_percentage=round(used * 100.0 / total, 2) if total else None,
            )
        )
    return items

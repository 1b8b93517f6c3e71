import calendar
from datetime import date, timedelta
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from warehouse_api.core.config import settings
from warehouse_api.core.money import ZERO_MONEY, to_money
from warehouse_api.models.product import Product
from warehouse_api.models.warehouse import WarehouseArea
from warehouse_api.schemas.report import (
    LayoutAreaOut,
    NearExpiryReportOut,
    NearExpiryRowOut,
    NearExpirySummaryOut,
    ReportTypeOut,
    StockReportOut,
    StockReportRowOut,
    StockReportSummaryOut,
    WarehouseLayoutReportOut,
)
from warehouse_api.schemas.warehouse import WarehouseAreaOut
from warehouse_api.services.product_service import product_listing_stmt
from warehouse_api.services.warehouse_service import list_location_rows

REPORT_TYPES = (
    ReportTypeOut(
        id="stock-excel",
        name="Stock Report (Excel)",
        description="Complete inventory stock report with current levels, locations, and valuations",
        format="Excel (.xlsx)",
    ),
    ReportTypeOut(
        id="near-expiry-excel",
        name="Near Expiry Report (Excel)",
        description="Products approaching expiration within specified timeframe",
        format="Excel (.xlsx)",
    ),
    ReportTypeOut(
        id="warehouse-layout-pdf",
        name="Warehouse Layout (PDF)",
        description="Visual warehouse layout with area and location details",
        format="PDF (.pdf)",
    ),
)


def add_months(value: date, months: int) -> date:
    """Calendar month arithmetic; the day is clamped to the target month's length."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def stock_status(current_stock: int, min_stock: int) -> str:
    if current_stock == 0:
        return "Out of Stock"
    if current_stock <= min_stock:
        return "Low Stock"
    return "In Stock"


def expiry_status(expiration_date: date | None, today: date) -> str:
    if expiration_date is None:
        return "Good"
    if expiration_date <= today:
        return "Expired"
    if expiration_date <= today + timedelta(days=settings.near_expiry_window_days):
        return "Near Expiry"
    return "Good"


def expiry_severity(days_until_expiry: int) -> str:
    if days_until_expiry < 0:
        return "Expired"
    if days_until_expiry <= 30:
        return "Critical (< 1 month)"
    if days_until_expiry <= 90:
        return "High (< 3 months)"
    return "Medium (< 6 months)"


def list_report_types() -> list[ReportTypeOut]:
    return list(REPORT_TYPES)


def build_stock_report(
    db: Session,
    *,
    category_id: str | None = None,
    low_stock_only: bool = False,
    today: date | None = None,
) -> StockReportOut:
    today = today or date.today()
    stmt = product_listing_stmt().where(Product.is_active.is_(True))
    if category_id:
        stmt = stmt.where(Product.category_id == category_id)
    if low_stock_only:
        stmt = stmt.where(Product.current_stock <= Product.min_stock)
    rows = db.execute(stmt.order_by(Product.name.asc())).all()

    items: list[StockReportRowOut] = []
    total_value: Decimal = ZERO_MONEY
    for row in rows:
        product: Product = row[0]
        line_value = to_money(Decimal(product.current_stock) * to_money(product.unit_price))
        total_value += line_value
        items.append(
            StockReportRowOut(
                id=product.id,
                sku=product.sku,
                name=product.name,
                category=row.category_name,
                location_code=row.location_code,
                area_name=row.area_name,
                current_stock=product.current_stock,
                min_stock=product.min_stock,
                max_stock=product.max_stock,
                unit_price=float(to_money(product.unit_price)),
                total_value=float(line_value),
                expiration_date=product.expiration_date,
                stock_status=stock_status(product.current_stock, product.min_stock),
                expiry_status=expiry_status(product.expiration_date, today),
            )
        )

    summary = StockReportSummaryOut(
        total_products=len(items),
        out_of_stock=sum(1 for item in items if item.stock_status == "Out of Stock"),
        low_stock=sum(1 for item in items if item.stock_status == "Low Stock"),
        in_stock=sum(1 for item in items if item.stock_status == "In Stock"),
        near_expiry=sum(1 for item in items if item.expiry_status == "Near Expiry"),
        expired=sum(1 for item in items if item.expiry_status == "Expired"),
        total_stock_value=float(to_money(total_value)),
    )
    return StockReportOut(generated_on=today, summary=summary, items=items)


def build_near_expiry_report(db: Session, *, months: int = 6, today: date | None = None) -> NearExpiryReportOut:
    today = today or date.today()
    cutoff = add_months(today, months)
    rows = db.execute(
        product_listing_stmt()
        .where(
            Product.is_active.is_(True),
            Product.expiration_date.is_not(None),
            Product.expiration_date <= cutoff,
        )
        .order_by(Product.expiration_date.asc(), Product.name.asc())
    ).all()

    items: list[NearExpiryRowOut] = []
    total_value: Decimal = ZERO_MONEY
    for row in rows:
        product: Product = row[0]
        days_until_expiry = (product.expiration_date - today).days
        line_value = to_money(Decimal(product.current_stock) * to_money(product.unit_price))
        total_value += line_value
        items.append(
            NearExpiryRowOut(
                id=product.id,
                sku=product.sku,
                name=product.name,
                category=row.category_name,
                location_code=row.location_code,
                area_name=row.area_name,
                current_stock=product.current_stock,
                expiration_date=product.expiration_date,
                unit_price=float(to_money(product.unit_price)),
                stock_value=float(line_value),
                days_until_expiry=days_until_expiry,
                expiry_status=expiry_severity(days_until_expiry),
            )
        )

    summary = NearExpirySummaryOut(
        expired=sum(1 for item in items if item.days_until_expiry < 0),
        within_30_days=sum(1 for item in items if item.days_until_expiry <= 30),
        within_90_days=sum(1 for item in items if item.days_until_expiry <= 90),
        total=len(items),
        total_stock_value=float(to_money(total_value)),
    )
    return NearExpiryReportOut(
        generated_on=today,
        months=months,
        cutoff_date=cutoff,
        summary=summary,
        items=items,
    )


def build_layout_report(db: Session, *, today: date | None = None) -> WarehouseLayoutReportOut:
    areas = db.execute(
        select(WarehouseArea)
        .where(WarehouseArea.is_active.is_(True))
        .order_by(WarehouseArea.name.asc())
    ).scalars().all()
    locations = list_location_rows(db)

    by_area: dict[str, list] = {}
    for location in locations:
        by_area.setdefault(location.area_id, []).append(location)

    layout = []
    for area in areas:
        area_locations = by_area.get(area.id, [])
        layout.append(
            LayoutAreaOut(
                **WarehouseAreaOut.model_validate(area).model_dump(),
                total_locations=len(area_locations),
                occupied_locations=sum(1 for location in area_locations if location.is_occupied),
                locations=area_locations,
            )
        )
    return WarehouseLayoutReportOut(generated_on=today or date.today(), areas=layout)

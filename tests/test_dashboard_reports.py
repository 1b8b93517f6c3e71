from datetime import date, timedelta
from decimal import Decimal

import pytest

from warehouse_api.models.category import Category
from warehouse_api.models.product import Product
from warehouse_api.models.warehouse import WarehouseArea, WarehouseLocation
from warehouse_api.services import report_service, stock_ledger

TODAY = date(2026, 3, 15)
ACTOR = "report-tester"


def _auth_headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def _seed_product(db, sku: str, *, stock: int = 0, **fields) -> Product:
    fields.setdefault("name", f"Product {sku}")
    product = Product(sku=sku, **fields)
    db.add(product)
    db.commit()
    if stock:
        stock_ledger.record_movement(db, product.id, "in", stock, actor=ACTOR)
    return product


@pytest.mark.parametrize(
    ("current", "minimum", "expected"),
    [(0, 5, "Out of Stock"), (5, 5, "Low Stock"), (6, 5, "In Stock"), (0, 0, "Out of Stock")],
)
def test_stock_status(current, minimum, expected):
    assert report_service.stock_status(current, minimum) == expected


def test_expiry_status_boundaries():
    assert report_service.expiry_status(None, TODAY) == "Good"
    assert report_service.expiry_status(TODAY, TODAY) == "Expired"
    assert report_service.expiry_status(TODAY + timedelta(days=1), TODAY) == "Near Expiry"
    assert report_service.expiry_status(TODAY + timedelta(days=180), TODAY) == "Near Expiry"
    assert report_service.expiry_status(TODAY + timedelta(days=181), TODAY) == "Good"


@pytest.mark.parametrize(
    ("days", "expected"),
    [
        (-1, "Expired"),
        (0, "Critical (< 1 month)"),
        (30, "Critical (< 1 month)"),
        (31, "High (< 3 months)"),
        (90, "High (< 3 months)"),
        (91, "Medium (< 6 months)"),
    ],
)
def test_expiry_severity(days, expected):
    assert report_service.expiry_severity(days) == expected


def test_add_months_clamps_to_month_end():
    assert report_service.add_months(date(2026, 8, 31), 6) == date(2027, 2, 28)
    assert report_service.add_months(date(2026, 1, 15), 1) == date(2026, 2, 15)
    assert report_service.add_months(date(2026, 11, 30), 3) == date(2027, 2, 28)


def test_stock_report_statuses_and_totals(db_session):
    chemicals = Category(name="Chemicals")
    db_session.add(chemicals)
    db_session.commit()
    _seed_product(db_session, "CH-1", name="Degreaser", stock=10, min_stock=2, unit_price=Decimal("3.50"),
                  category_id=chemicals.id, expiration_date=TODAY + timedelta(days=20))
    _seed_product(db_session, "CH-2", name="Bleach", stock=2, min_stock=5, unit_price=Decimal("1.25"),
                  category_id=chemicals.id, expiration_date=TODAY - timedelta(days=3))
    _seed_product(db_session, "PK-1", name="Box", min_stock=1, unit_price=Decimal("0.80"))
    _seed_product(db_session, "OLD-1", name="Discontinued", stock=4, is_active=False)

    report = report_service.build_stock_report(db_session, today=TODAY)

    assert [item.sku for item in report.items] == ["CH-2", "PK-1", "CH-1"]
    by_sku = {item.sku: item for item in report.items}
    assert by_sku["CH-1"].stock_status == "In Stock"
    assert by_sku["CH-1"].expiry_status == "Near Expiry"
    assert by_sku["CH-1"].total_value == 35.0
    assert by_sku["CH-1"].category == "Chemicals"
    assert by_sku["CH-2"].stock_status == "Low Stock"
    assert by_sku["CH-2"].expiry_status == "Expired"
    assert by_sku["PK-1"].stock_status == "Out of Stock"
    assert by_sku["PK-1"].expiry_status == "Good"

    summary = report.summary
    assert (summary.total_products, summary.in_stock, summary.low_stock, summary.out_of_stock) == (3, 1, 1, 1)
    assert (summary.near_expiry, summary.expired) == (1, 1)
    assert summary.total_stock_value == 37.5


def test_stock_report_filters(db_session):
    packaging = Category(name="Packaging")
    db_session.add(packaging)
    db_session.commit()
    _seed_product(db_session, "PK-1", stock=1, min_stock=3, category_id=packaging.id)
    _seed_product(db_session, "PK-2", stock=9, min_stock=3, category_id=packaging.id)
    _seed_product(db_session, "MISC-1", stock=0, min_stock=3)

    low = report_service.build_stock_report(db_session, low_stock_only=True, today=TODAY)
    packaging_only = report_service.build_stock_report(db_session, category_id=packaging.id, today=TODAY)

    assert sorted(item.sku for item in low.items) == ["MISC-1", "PK-1"]
    assert sorted(item.sku for item in packaging_only.items) == ["PK-1", "PK-2"]


def test_near_expiry_report(db_session):
    _seed_product(db_session, "EXP-PAST", stock=3, unit_price=Decimal("2"), expiration_date=TODAY - timedelta(days=5))
    _seed_product(db_session, "EXP-20", stock=1, unit_price=Decimal("10"), expiration_date=TODAY + timedelta(days=20))
    _seed_product(db_session, "EXP-60", expiration_date=TODAY + timedelta(days=60))
    _seed_product(db_session, "EXP-150", expiration_date=TODAY + timedelta(days=150))
    _seed_product(db_session, "EXP-LATER", expiration_date=TODAY + timedelta(days=400))
    _seed_product(db_session, "NO-EXP")

    report = report_service.build_near_expiry_report(db_session, months=6, today=TODAY)

    assert report.cutoff_date == date(2026, 9, 15)
    assert [item.sku for item in report.items] == ["EXP-PAST", "EXP-20", "EXP-60", "EXP-150"]
    assert [item.expiry_status for item in report.items] == [
        "Expired",
        "Critical (< 1 month)",
        "High (< 3 months)",
        "Medium (< 6 months)",
    ]
    assert report.items[0].days_until_expiry == -5
    assert report.items[0].stock_value == 6.0
    summary = report.summary
    assert (summary.expired, summary.within_30_days, summary.within_90_days, summary.total) == (1, 2, 3, 4)
    assert summary.total_stock_value == 16.0

    narrow = report_service.build_near_expiry_report(db_session, months=1, today=TODAY)
    assert [item.sku for item in narrow.items] == ["EXP-PAST", "EXP-20"]


def test_layout_report_groups_locations_by_area(db_session):
    racking = WarehouseArea(name="Racking")
    empty = WarehouseArea(name="Dock", type="door")
    db_session.add_all([racking, empty])
    db_session.commit()
    first = WarehouseLocation(area_id=racking.id, row_number=1, column_number=1, location_code="R-01-01")
    second = WarehouseLocation(area_id=racking.id, row_number=1, column_number=2, location_code="R-01-02")
    db_session.add_all([first, second])
    db_session.commit()
    _seed_product(db_session, "R-ITEM", stock=2, location_id=first.id)

    report = report_service.build_layout_report(db_session, today=TODAY)

    assert [area.name for area in report.areas] == ["Dock", "Racking"]
    dock, rack = report.areas
    assert (dock.total_locations, dock.occupied_locations, dock.locations) == (0, 0, [])
    assert (rack.total_locations, rack.occupied_locations) == (2, 1)
    assert [location.location_code for location in rack.locations] == ["R-01-01", "R-01-02"]
    assert rack.locations[0].sku == "R-ITEM"


def test_dashboard_stats(test_context, admin_token):
    client, _ = test_context
    headers = _auth_headers(admin_token)
    category_id = client.post("/categories", json={"name": "Tools"}, headers=headers).json()["id"]
    client.post("/categories", json={"name": "Unused"}, headers=headers)
    area_id = client.post("/warehouse/areas", json={"name": "Racking"}, headers=headers).json()["id"]
    client.post("/warehouse/areas", json={"name": "Yard"}, headers=headers)
    location_ids = [
        client.post(
            "/warehouse/locations",
            json={"area_id": area_id, "row_number": 1, "column_number": column, "location_code": f"T-01-0{column}"},
            headers=headers,
        ).json()["id"]
        for column in (1, 2, 3)
    ]
    hammer = client.post(
        "/products",
        json={"sku": "HM-1", "name": "Hammer", "unit_price": 12.5, "min_stock": 2,
              "category_id": category_id, "location_id": location_ids[0]},
        headers=headers,
    ).json()["id"]
    client.post(
        "/products",
        json={"sku": "WR-1", "name": "Wrench", "unit_price": 9, "category_id": category_id},
        headers=headers,
    )
    client.post("/stock-movements", json={"product_id": hammer, "movement_type": "in", "quantity": 4}, headers=headers)

    res = client.get("/dashboard/stats", headers=headers)

    assert res.status_code == 200, res.text
    body = res.json()
    assert body["total_products"] == 2
    assert body["total_value"] == 50.0
    assert body["low_stock"] == 1
    assert body["out_of_stock"] == 1
    assert [row["quantity"] for row in body["recent_movements"]] == [4]
    assert body["recent_movements"][0]["product_name"] == "Hammer"
    assert body["stock_by_category"] == [
        {"category_name": "Tools", "product_count": 2, "total_stock": 4},
        {"category_name": "Unused", "product_count": 0, "total_stock": 0},
    ]
    assert body["warehouse_utilization"] == [
        {"area_name": "Racking", "total_locations": 3, "used_locations": 1, "utilization_percentage": 33.33},
        {"area_name": "Yard", "total_locations": 0, "used_locations": 0, "utilization_percentage": None},
    ]


def test_report_endpoints(test_context, admin_token):
    client, _ = test_context
    headers = _auth_headers(admin_token)

    types = client.get("/reports/types", headers=headers)
    assert types.status_code == 200
    assert [row["id"] for row in types.json()] == ["stock-excel", "near-expiry-excel", "warehouse-layout-pdf"]

    stock = client.get("/reports/stock", params={"low_stock_only": True}, headers=headers)
    assert stock.status_code == 200, stock.text
    assert stock.json()["summary"]["total_products"] == 0

    near_expiry = client.get("/reports/near-expiry", params={"months": 3}, headers=headers)
    assert near_expiry.status_code == 200, near_expiry.text
    assert near_expiry.json()["months"] == 3

    too_far = client.get("/reports/near-expiry", params={"months": 0}, headers=headers)
    assert too_far.status_code == 422

    layout = client.get("/reports/warehouse-layout", headers=headers)
    assert layout.status_code == 200
    assert layout.json()["areas"] == []

    assert client.get("/reports/types").status_code == 401

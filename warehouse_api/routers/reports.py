from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from warehouse_api.core.api_docs import error_responses
from warehouse_api.core.deps import get_db
from warehouse_api.core.security_current import get_current_user
from warehouse_api.models.user import User
from warehouse_api.schemas.report import (
    NearExpiryReportOut,
    ReportTypeOut,
    StockReportOut,
    WarehouseLayoutReportOut,
)
from warehouse_api.services import report_service

router = APIRouter(prefix="/reports", tags=["reports"])


@router.get(
    "/types",
    response_model=list[ReportTypeOut],
    summary="List report types",
    responses=error_responses(401, 500),
)
def list_report_types(_user: User = Depends(get_current_user)):
    return report_service.list_report_types()


@router.get(
    "/stock",
    response_model=StockReportOut,
    summary="Stock report data",
    description="Active products with stock and expiry status, plus summary totals.",
    responses=error_responses(401, 422, 500),
)
def stock_report(
    category_id: str | None = Query(default=None),
    low_stock_only: bool = Query(default=False),
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
):
    return report_service.build_stock_report(db, category_id=category_id, low_stock_only=low_stock_only)


@router.get(
    "/near-expiry",
    response_model=NearExpiryReportOut,
    summary="Near expiry report data",
    description="Active products expiring within the next `months` months, soonest first.",
    responses=error_responses(401, 422, 500),
)
def near_expiry_report(
    months: int = Query(default=6, ge=1, le=60),
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
):
    return report_service.build_near_expiry_report(db, months=months)


@router.get(
    "/warehouse-layout",
    response_model=WarehouseLayoutReportOut,
    summary="Warehouse layout report data",
    responses=error_responses(401, 500),
)
def warehouse_layout_report(
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
):
    return report_service.build_layout_report(db)

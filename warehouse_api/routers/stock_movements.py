from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from warehouse_api.core.api_docs import error_responses
from warehouse_api.core.deps import get_db
from warehouse_api.core.permissions import require_roles
from warehouse_api.core.security_current import get_current_user
from warehouse_api.models.product import Product
from warehouse_api.models.stock_movement import MOVEMENT_TYPES
from warehouse_api.models.user import User
from warehouse_api.schemas.stock_movement import (
    StockMovementCreate,
    StockMovementCreatedOut,
    StockMovementListOut,
    StockMovementOut,
    StockMovementReversedOut,
    StockMovementStatsOut,
)
from warehouse_api.services import movement_service, stock_ledger

router = APIRouter(prefix="/stock-movements", tags=["stock-movements"])
MAX_MOVEMENT_PAGE_SIZE = 500


@router.get(
    "",
    response_model=StockMovementListOut,
    summary="List stock movements",
    description="Newest first. Dates filter on the day the movement was recorded (inclusive).",
    responses=error_responses(400, 401, 422, 500),
)
def list_stock_movements(
    product_id: str | None = Query(default=None),
    movement_type: str | None = Query(default=None, description="in, out or adjustment"),
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=50, ge=1, le=MAX_MOVEMENT_PAGE_SIZE, description="Page size"),
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
):
    if movement_type:
        movement_type = movement_type.strip().lower()
        if movement_type not in MOVEMENT_TYPES:
            raise HTTPException(status_code=400, detail="Invalid movement type")
    if start_date and end_date and start_date > end_date:
        raise HTTPException(status_code=400, detail="start_date cannot be after end_date")
    return movement_service.list_movements(
        db,
        page=page,
        limit=limit,
        product_id=product_id,
        movement_type=movement_type,
        start_date=start_date,
        end_date=end_date,
    )


@router.get(
    "/stats",
    response_model=StockMovementStatsOut,
    summary="Stock movement statistics",
    description="Per-type totals, daily trends for the last 30 days and the 10 most active products.",
    responses=error_responses(401, 422, 500),
)
def stock_movement_stats(
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
):
    return movement_service.get_stats(db, start_date=start_date, end_date=end_date)


@router.get(
    "/product/{product_id}",
    response_model=list[StockMovementOut],
    summary="List movements for a product",
    responses=error_responses(401, 404, 500),
)
def list_product_stock_movements(
    product_id: str,
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
):
    exists = db.execute(select(Product.id).where(Product.id == product_id)).scalar_one_or_none()
    if not exists:
        raise HTTPException(status_code=404, detail="Product not found")
    return movement_service.list_product_movements(db, product_id)


@router.post(
    "",
    response_model=StockMovementCreatedOut,
    status_code=status.HTTP_201_CREATED,
    summary="Record stock movement",
    description=(
        "`in` adds and `out` removes `quantity` units. `adjustment` sets the stock "
        "level to `quantity`. Rejected with 409 when stock would go negative."
    ),
    responses=error_responses(400, 401, 404, 409, 422, 500, 503),
)
def create_stock_movement(
    payload: StockMovementCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    receipt = stock_ledger.record_movement(
        db,
        payload.product_id,
        payload.movement_type,
        payload.quantity,
        actor=user.username,
        reference_number=payload.reference_number,
        notes=payload.notes,
    )
    return StockMovementCreatedOut(
        id=receipt.movement_id,
        product_id=receipt.product_id,
        movement_type=receipt.movement_type,
        quantity=receipt.quantity,
        new_balance=receipt.new_balance,
    )


@router.delete(
    "/{movement_id}",
    response_model=StockMovementReversedOut,
    summary="Delete (reverse) stock movement",
    description="Admin only. Undoes the movement's effect on stock; adjustments cannot be reversed.",
    responses=error_responses(401, 403, 404, 409, 422, 500, 503),
)
def delete_stock_movement(
    movement_id: str,
    db: Session = Depends(get_db),
    admin: User = Depends(require_roles("admin")),
):
    receipt = stock_ledger.reverse_movement(
        db, movement_id, stock_ledger.ReversalGrant(actor=admin.username)
    )
    return StockMovementReversedOut(product_id=receipt.product_id, new_balance=receipt.new_balance)

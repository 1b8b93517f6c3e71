from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from warehouse_api.core.api_docs import error_responses
from warehouse_api.core.deps import get_db
from warehouse_api.core.observability import log_event, logger
from warehouse_api.core.security_current import get_current_user
from warehouse_api.models.category import Category
from warehouse_api.models.product import Product
from warehouse_api.models.user import User
from warehouse_api.models.warehouse import WarehouseLocation
from warehouse_api.schemas.common import CreatedOut
from warehouse_api.schemas.product import (
    ProductBalanceOut,
    ProductCreate,
    ProductDeleteOut,
    ProductOut,
    ProductStockIn,
    ProductUpdate,
)
from warehouse_api.schemas.stock_movement import StockMovementCreatedOut
from warehouse_api.services import stock_ledger
from warehouse_api.services.product_service import get_product_out, list_products

router = APIRouter(prefix="/products", tags=["products"])


def _product_or_404(db: Session, product_id: str) -> Product:
    product = db.execute(select(Product).where(Product.id == product_id)).scalar_one_or_none()
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


def _check_references(db: Session, *, category_id: str | None, location_id: str | None) -> None:
    if category_id and not db.get(Category, category_id):
        raise HTTPException(status_code=400, detail="Category not found")
    if location_id and not db.get(WarehouseLocation, location_id):
        raise HTTPException(status_code=400, detail="Warehouse location not found")


@router.get(
    "",
    response_model=list[ProductOut],
    summary="List products",
    description="Products with their category, location and area names, newest first.",
    responses=error_responses(401, 422, 500),
)
def list_all_products(
    category_id: str | None = Query(default=None),
    active_only: bool = Query(default=False),
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
):
    return list_products(db, active_only=active_only, category_id=category_id)


@router.get(
    "/{product_id}",
    response_model=ProductOut,
    summary="Get product",
    responses=error_responses(401, 404, 500),
)
def get_product(
    product_id: str,
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
):
    product = get_product_out(db, product_id)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


@router.post(
    "",
    response_model=CreatedOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create product",
    description="New products start with zero stock; stock is received through stock movements.",
    responses=error_responses(400, 401, 409, 422, 500),
)
def create_product(
    payload: ProductCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    sku_exists = db.execute(
        select(Product.id).where(func.lower(Product.sku) == payload.sku.lower())
    ).scalar_one_or_none()
    if sku_exists:
        raise HTTPException(status_code=409, detail="SKU already exists")
    _check_references(db, category_id=payload.category_id, location_id=payload.location_id)

    product = Product(
        sku=payload.sku,
        name=payload.name,
        description=payload.description,
        category_id=payload.category_id,
        min_stock=payload.min_stock,
        max_stock=payload.max_stock,
        unit_price=payload.unit_price,
        expiration_date=payload.expiration_date,
        location_id=payload.location_id,
        manual_row=payload.manual_row,
        manual_column=payload.manual_column,
    )
    db.add(product)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(status_code=409, detail="SKU already exists") from exc

    log_event(logger, "product.created", product_id=product.id, sku=product.sku, actor=user.username)
    return CreatedOut(id=product.id, message="Product created successfully")


@router.put(
    "/{product_id}",
    response_model=ProductOut,
    summary="Update product",
    description="SKU is immutable and stock levels only change through stock movements.",
    responses=error_responses(400, 401, 404, 422, 500),
)
def update_product(
    product_id: str,
    payload: ProductUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    product = _product_or_404(db, product_id)
    if payload.sku is not None and payload.sku.strip() != product.sku:
        raise HTTPException(status_code=400, detail="SKU cannot be changed")
    _check_references(db, category_id=payload.category_id, location_id=payload.location_id)

    product.name = payload.name
    product.description = payload.description
    product.category_id = payload.category_id
    product.min_stock = payload.min_stock
    product.max_stock = payload.max_stock
    product.unit_price = payload.unit_price
    product.expiration_date = payload.expiration_date
    product.location_id = payload.location_id
    product.manual_row = payload.manual_row
    product.manual_column = payload.manual_column
    if payload.is_active is not None:
        product.is_active = payload.is_active
    db.commit()

    log_event(logger, "product.updated", product_id=product.id, actor=user.username)
    return get_product_out(db, product.id)


@router.delete(
    "/{product_id}",
    response_model=ProductDeleteOut,
    summary="Delete product",
    description="Removes the product together with its stock movement history.",
    responses=error_responses(401, 404, 500, 503),
)
def delete_product(
    product_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    deleted = stock_ledger.delete_product(db, product_id, actor=user.username)
    return ProductDeleteOut(message="Product deleted successfully", deleted_movements=deleted)


@router.post(
    "/{product_id}/stock",
    response_model=StockMovementCreatedOut,
    summary="Update product stock",
    description=(
        "Records a stock movement for the product. Use `movement_type` `adjustment` "
        "with `quantity` set to the counted stock level."
    ),
    responses=error_responses(400, 401, 404, 409, 422, 500, 503),
)
def update_stock(
    product_id: str,
    payload: ProductStockIn,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    receipt = stock_ledger.record_movement(
        db,
        product_id,
        payload.movement_type,
        payload.quantity,
        actor=user.username,
        reference_number=payload.reference_number,
        notes=payload.notes,
    )
    return StockMovementCreatedOut(
        id=receipt.movement_id,
        message="Stock updated successfully",
        product_id=receipt.product_id,
        movement_type=receipt.movement_type,
        quantity=receipt.quantity,
        new_balance=receipt.new_balance,
    )


@router.get(
    "/{product_id}/balance",
    response_model=ProductBalanceOut,
    summary="Get product stock balance",
    responses=error_responses(401, 404, 500, 503),
)
def get_product_balance(
    product_id: str,
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
):
    return ProductBalanceOut(product_id=product_id, current_stock=stock_ledger.get_balance(db, product_id))

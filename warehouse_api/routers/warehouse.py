from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from warehouse_api.core.api_docs import error_responses
from warehouse_api.core.config import settings
from warehouse_api.core.deps import get_db
from warehouse_api.core.observability import log_event, logger
from warehouse_api.core.security_current import get_current_user
from warehouse_api.models.user import User
from warehouse_api.models.warehouse import WarehouseArea, WarehouseLocation
from warehouse_api.schemas.common import CreatedOut, MessageOut
from warehouse_api.schemas.warehouse import (
    WarehouseAreaDeleteOut,
    WarehouseAreaIn,
    WarehouseAreaOut,
    WarehouseLocationIn,
    WarehouseLocationOut,
)
from warehouse_api.services.warehouse_service import list_location_rows, location_product_count

router = APIRouter(prefix="/warehouse", tags=["warehouse"])
layout_router = APIRouter(tags=["warehouse"])


def _area_or_404(db: Session, area_id: str) -> WarehouseArea:
    area = db.execute(select(WarehouseArea).where(WarehouseArea.id == area_id)).scalar_one_or_none()
    if not area:
        raise HTTPException(status_code=404, detail="Warehouse area not found")
    return area


def _location_or_404(db: Session, location_id: str) -> WarehouseLocation:
    location = db.execute(
        select(WarehouseLocation).where(WarehouseLocation.id == location_id)
    ).scalar_one_or_none()
    if not location:
        raise HTTPException(status_code=404, detail="Warehouse location not found")
    return location


def _ensure_code_available(db: Session, location_code: str, exclude_id: str | None = None) -> None:
    stmt = select(WarehouseLocation.id).where(func.upper(WarehouseLocation.location_code) == location_code)
    if exclude_id:
        stmt = stmt.where(WarehouseLocation.id != exclude_id)
    if db.execute(stmt).scalar_one_or_none():
        raise HTTPException(status_code=409, detail="Location code already exists")


def _commit_location(db: Session) -> None:
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(status_code=409, detail="Location code already exists") from exc


def _location_out(db: Session, location_id: str) -> WarehouseLocationOut:
    return list_location_rows(db, location_id=location_id)[0]


@router.get(
    "/areas",
    response_model=list[WarehouseAreaOut],
    summary="List warehouse areas",
    responses=error_responses(401, 500),
)
def list_areas(
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
):
    rows = db.execute(
        select(WarehouseArea).order_by(WarehouseArea.created_at.desc(), WarehouseArea.name.asc())
    ).scalars().all()
    return [WarehouseAreaOut.model_validate(row) for row in rows]


@router.post(
    "/areas",
    response_model=CreatedOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create warehouse area",
    responses=error_responses(401, 422, 500),
)
def create_area(
    payload: WarehouseAreaIn,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    area = WarehouseArea(**payload.model_dump())
    db.add(area)
    db.commit()
    log_event(logger, "warehouse_area.created", area_id=area.id, actor=user.username)
    return CreatedOut(id=area.id, message="Warehouse area created successfully")


@router.put(
    "/areas/{area_id}",
    response_model=WarehouseAreaOut,
    summary="Update warehouse area",
    responses=error_responses(401, 404, 422, 500),
)
def update_area(
    area_id: str,
    payload: WarehouseAreaIn,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    area = _area_or_404(db, area_id)
    for field, value in payload.model_dump().items():
        setattr(area, field, value)
    db.commit()
    db.refresh(area)
    log_event(logger, "warehouse_area.updated", area_id=area.id, actor=user.username)
    return WarehouseAreaOut.model_validate(area)


@router.delete(
    "/areas/{area_id}",
    response_model=WarehouseAreaDeleteOut,
    summary="Delete warehouse area",
    description="Deletes the area and all of its locations. Rejected while products occupy any of them.",
    responses=error_responses(400, 401, 404, 500),
)
def delete_area(
    area_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    area = _area_or_404(db, area_id)
    location_ids = db.execute(
        select(WarehouseLocation.id).where(WarehouseLocation.area_id == area.id)
    ).scalars().all()

    in_use = location_product_count(db, list(location_ids))
    if in_use:
        raise HTTPException(
            status_code=400,
            detail=(
                f"Cannot delete area. {in_use} products are still using locations in this area. "
                "Please move or delete the products first."
            ),
        )

    if location_ids:
        db.execute(delete(WarehouseLocation).where(WarehouseLocation.area_id == area.id))
    db.delete(area)
    db.commit()
    log_event(
        logger,
        "warehouse_area.deleted",
        area_id=area_id,
        deleted_locations=len(location_ids),
        actor=user.username,
    )
    return WarehouseAreaDeleteOut(
        message="Warehouse area deleted successfully",
        deleted_locations=len(location_ids),
    )


@router.get(
    "/locations",
    response_model=list[WarehouseLocationOut],
    summary="List warehouse locations",
    responses=error_responses(401, 422, 500),
)
def list_locations(
    area_id: str | None = Query(default=None),
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
):
    return list_location_rows(db, area_id=area_id)


@router.post(
    "/locations",
    response_model=CreatedOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create warehouse location",
    responses=error_responses(400, 401, 409, 422, 500),
)
def create_location(
    payload: WarehouseLocationIn,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    if not db.get(WarehouseArea, payload.area_id):
        raise HTTPException(status_code=400, detail="Warehouse area not found")
    _ensure_code_available(db, payload.location_code)

    location = WarehouseLocation(
        area_id=payload.area_id,
        row_number=payload.row_number,
        column_number=payload.column_number,
        location_code=payload.location_code,
        capacity=payload.capacity or settings.default_location_capacity,
    )
    db.add(location)
    _commit_location(db)
    log_event(logger, "warehouse_location.created", location_id=location.id, actor=user.username)
    return CreatedOut(id=location.id, message="Warehouse location created successfully")


@router.put(
    "/locations/{location_id}",
    response_model=WarehouseLocationOut,
    summary="Update warehouse location",
    responses=error_responses(400, 401, 404, 409, 422, 500),
)
def update_location(
    location_id: str,
    payload: WarehouseLocationIn,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    location = _location_or_404(db, location_id)
    if not db.get(WarehouseArea, payload.area_id):
        raise HTTPException(status_code=400, detail="Warehouse area not found")
    _ensure_code_available(db, payload.location_code, exclude_id=location.id)

    location.area_id = payload.area_id
    location.row_number = payload.row_number
    location.column_number = payload.column_number
    location.location_code = payload.location_code
    location.capacity = payload.capacity or settings.default_location_capacity
    _commit_location(db)
    log_event(logger, "warehouse_location.updated", location_id=location.id, actor=user.username)
    return _location_out(db, location.id)


@router.delete(
    "/locations/{location_id}",
    response_model=MessageOut,
    summary="Delete warehouse location",
    description="Rejected while any product is placed at the location.",
    responses=error_responses(400, 401, 404, 500),
)
def delete_location(
    location_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    location = _location_or_404(db, location_id)
    in_use = location_product_count(db, [location.id])
    if in_use:
        raise HTTPException(
            status_code=400,
            detail=(
                f"Cannot delete location. {in_use} products are still using this location. "
                "Please move or delete the products first."
            ),
        )

    db.delete(location)
    db.commit()
    log_event(logger, "warehouse_location.deleted", location_id=location_id, actor=user.username)
    return MessageOut(message="Warehouse location deleted successfully")


@layout_router.get(
    "/warehouse-areas",
    response_model=list[WarehouseAreaOut],
    summary="List active warehouse areas",
    responses=error_responses(401, 500),
)
def list_active_areas(
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
):
    rows = db.execute(
        select(WarehouseArea)
        .where(WarehouseArea.is_active.is_(True))
        .order_by(WarehouseArea.name.asc())
    ).scalars().all()
    return [WarehouseAreaOut.model_validate(row) for row in rows]


@layout_router.get(
    "/warehouse-locations",
    response_model=list[WarehouseLocationOut],
    summary="List warehouse locations with their products",
    responses=error_responses(401, 500),
)
def list_locations_with_products(
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
):
    return list_location_rows(db)

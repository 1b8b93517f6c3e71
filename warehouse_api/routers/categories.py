from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from warehouse_api.core.api_docs import error_responses
from warehouse_api.core.deps import get_db
from warehouse_api.core.security_current import get_current_user
from warehouse_api.models.category import Category
from warehouse_api.models.user import User
from warehouse_api.schemas.category import CategoryCreate, CategoryOut
from warehouse_api.schemas.common import CreatedOut

router = APIRouter(prefix="/categories", tags=["categories"])


@router.get(
    "",
    response_model=list[CategoryOut],
    summary="List categories",
    responses=error_responses(401, 500),
)
def list_categories(
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
):
    rows = db.execute(select(Category).order_by(Category.name.asc())).scalars().all()
    return [CategoryOut.model_validate(row) for row in rows]


@router.post(
    "",
    response_model=CreatedOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create category",
    responses=error_responses(401, 409, 422, 500),
)
def create_category(
    payload: CategoryCreate,
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
):
    exists = db.execute(
        select(Category.id).where(func.lower(Category.name) == payload.name.lower())
    ).scalar_one_or_none()
    if exists:
        raise HTTPException(status_code=409, detail="Category already exists")

    category = Category(name=payload.name, description=payload.description)
    db.add(category)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(status_code=409, detail="Category already exists") from exc
    return CreatedOut(id=category.id, message="Category created successfully")

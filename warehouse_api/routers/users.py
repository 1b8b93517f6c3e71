from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from warehouse_api.core.api_docs import error_responses
from warehouse_api.core.deps import get_db
from warehouse_api.core.observability import log_event, logger
from warehouse_api.core.permissions import ensure_self_or_admin, require_roles
from warehouse_api.core.security import hash_password, verify_password
from warehouse_api.core.security_current import get_current_user, is_admin
from warehouse_api.models.user import User
from warehouse_api.schemas.auth import UserProfileOut
from warehouse_api.schemas.common import CreatedOut, MessageOut
from warehouse_api.schemas.user import PasswordChangeIn, UserCreate, UserUpdate
from warehouse_api.services.user_service import identity_taken

router = APIRouter(prefix="/users", tags=["users"])
DUPLICATE_IDENTITY = "Username or email already exists"


def _user_or_404(db: Session, user_id: str) -> User:
    user = db.execute(select(User).where(User.id == user_id)).scalar_one_or_none()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


def _commit_identity_change(db: Session) -> None:
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(status_code=409, detail=DUPLICATE_IDENTITY) from exc


@router.get(
    "",
    response_model=list[UserProfileOut],
    summary="List users",
    responses=error_responses(401, 403, 500),
)
def list_users(
    db: Session = Depends(get_db),
    _admin: User = Depends(require_roles("admin")),
):
    users = db.execute(select(User).order_by(User.created_at.desc(), User.username.asc())).scalars().all()
    return [UserProfileOut.model_validate(user) for user in users]


@router.get(
    "/{user_id}",
    response_model=UserProfileOut,
    summary="Get user",
    responses=error_responses(401, 403, 404, 500),
)
def get_user(
    user_id: str,
    db: Session = Depends(get_db),
    current: User = Depends(get_current_user),
):
    ensure_self_or_admin(current, user_id)
    return UserProfileOut.model_validate(_user_or_404(db, user_id))


@router.post(
    "",
    response_model=CreatedOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create user",
    responses=error_responses(401, 403, 409, 422, 500),
)
def create_user(
    payload: UserCreate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_roles("admin")),
):
    if identity_taken(db, username=payload.username, email=payload.email):
        raise HTTPException(status_code=409, detail=DUPLICATE_IDENTITY)

    user = User(
        username=payload.username,
        email=payload.email.lower(),
        full_name=payload.full_name,
        hashed_password=hash_password(payload.password),
        role=payload.role,
    )
    db.add(user)
    _commit_identity_change(db)
    log_event(logger, "user.created", user_id=user.id, role=user.role, actor=admin.username)
    return CreatedOut(id=user.id, message="User created successfully")


@router.put(
    "/{user_id}",
    response_model=UserProfileOut,
    summary="Update user",
    description="Users may edit their own profile. Only admins may change role or active status.",
    responses=error_responses(400, 401, 403, 404, 409, 422, 500),
)
def update_user(
    user_id: str,
    payload: UserUpdate,
    db: Session = Depends(get_db),
    current: User = Depends(get_current_user),
):
    ensure_self_or_admin(current, user_id)
    changes = payload.model_dump(exclude_none=True)
    if not is_admin(current) and ("role" in changes or "is_active" in changes):
        raise HTTPException(status_code=403, detail="Cannot modify role or status")
    if not changes:
        raise HTTPException(status_code=400, detail="No valid fields to update")

    user = _user_or_404(db, user_id)
    if "username" in changes or "email" in changes:
        if identity_taken(
            db,
            username=changes.get("username", user.username),
            email=changes.get("email", user.email),
            exclude_user_id=user.id,
        ):
            raise HTTPException(status_code=409, detail=DUPLICATE_IDENTITY)

    if "username" in changes:
        user.username = changes["username"]
    if "email" in changes:
        user.email = changes["email"].lower()
    if "full_name" in changes:
        user.full_name = changes["full_name"]
    if "role" in changes:
        user.role = changes["role"]
    if "is_active" in changes:
        user.is_active = changes["is_active"]
    if "password" in changes:
        user.hashed_password = hash_password(changes["password"])

    _commit_identity_change(db)
    db.refresh(user)
    log_event(logger, "user.updated", user_id=user.id, fields=sorted(changes), actor=current.username)
    return UserProfileOut.model_validate(user)


@router.delete(
    "/{user_id}",
    response_model=MessageOut,
    summary="Delete user",
    responses=error_responses(400, 401, 403, 404, 500),
)
def delete_user(
    user_id: str,
    db: Session = Depends(get_db),
    admin: User = Depends(require_roles("admin")),
):
    if admin.id == user_id:
        raise HTTPException(status_code=400, detail="Cannot delete your own account")

    user = _user_or_404(db, user_id)
    db.delete(user)
    db.commit()
    log_event(logger, "user.deleted", user_id=user_id, actor=admin.username)
    return MessageOut(message="User deleted successfully")


@router.put(
    "/{user_id}/password",
    response_model=MessageOut,
    summary="Change password",
    description="Users changing their own password must supply the current one; admins need not.",
    responses=error_responses(400, 401, 403, 404, 422, 500),
)
def change_password(
    user_id: str,
    payload: PasswordChangeIn,
    db: Session = Depends(get_db),
    current: User = Depends(get_current_user),
):
    ensure_self_or_admin(current, user_id)
    user = _user_or_404(db, user_id)

    if not is_admin(current):
        if not payload.current_password:
            raise HTTPException(status_code=400, detail="Current password is required")
        if not verify_password(payload.current_password, user.hashed_password):
            raise HTTPException(status_code=401, detail="Current password is incorrect")

    user.hashed_password = hash_password(payload.new_password)
    db.commit()
    log_event(logger, "user.password_changed", user_id=user.id, actor=current.username)
    return MessageOut(message="Password updated successfully")

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from warehouse_api.core.api_docs import error_responses
from warehouse_api.core.config import settings
from warehouse_api.core.deps import get_db
from warehouse_api.core.observability import log_event, logger
from warehouse_api.core.rate_limit import LoginRateLimiter
from warehouse_api.core.security import (
    ACCESS_TOKEN_TYPE,
    create_access_token,
    get_token_metadata,
    hash_password,
    verify_password,
)
from warehouse_api.core.security_current import get_current_user, oauth2_scheme
from warehouse_api.models.user import User
from warehouse_api.schemas.auth import LoginIn, RegisterIn, TokenOut, UserProfileOut
from warehouse_api.schemas.common import CreatedOut, MessageOut
from warehouse_api.services.user_service import identity_taken

router = APIRouter(prefix="/auth", tags=["auth"])
TOKEN_RESPONSE = {
    200: {
        "description": "Access token and user profile",
        "content": {
            "application/json": {
                "example": {
                    "access_token": "access-token",
                    "token_type": "bearer",
                    "user": {
                        "id": "abc123",
                        "username": "jane",
                        "email": "jane@example.com",
                        "full_name": "Jane Keeper",
                        "role": "admin",
                        "is_active": True,
                    },
                }
            }
        },
    }
}

login_rate_limiter = LoginRateLimiter(
    max_attempts=settings.auth_rate_limit_max_attempts,
    window_seconds=settings.auth_rate_limit_window_seconds,
    lock_seconds=settings.auth_rate_limit_lock_seconds,
)


def _client_ip(request: Request) -> str:
    forwarded_for = request.headers.get("x-forwarded-for", "").strip()
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def _enforce_rate_limit(identifier: str, client_ip: str) -> str:
    key = LoginRateLimiter.key_for(identifier, client_ip)
    retry_after = login_rate_limiter.retry_after(key)
    if retry_after > 0:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many failed attempts. Try again later.",
            headers={"Retry-After": str(retry_after)},
        )
    return key


def _authenticate_user(db: Session, identifier: str, password: str) -> User:
    normalized_identifier = identifier.strip().lower()
    user = db.execute(
        select(User).where(
            or_(
                func.lower(User.email) == normalized_identifier,
                func.lower(User.username) == normalized_identifier,
            )
        )
    ).scalar_one_or_none()

    # Disabled accounts get the same answer as a wrong password.
    if not user or not user.is_active or not verify_password(password, user.hashed_password):
        raise HTTPException(status_code=401, detail="Invalid credentials")

    return user


def _login(db: Session, request: Request, identifier: str, password: str) -> TokenOut:
    key = _enforce_rate_limit(identifier, _client_ip(request))
    try:
        user = _authenticate_user(db, identifier, password)
    except HTTPException as exc:
        if exc.status_code == 401:
            login_rate_limiter.register_failure(key)
            log_event(logger, "auth.login_failed", identifier=identifier.strip().lower())
        raise

    login_rate_limiter.register_success(key)
    user.last_login = datetime.now(timezone.utc)
    db.commit()
    db.refresh(user)
    log_event(logger, "auth.login", user_id=user.id)
    return TokenOut(
        access_token=create_access_token(user.id),
        user=UserProfileOut.model_validate(user),
    )


@router.post(
    "/register",
    response_model=CreatedOut,
    status_code=status.HTTP_201_CREATED,
    summary="Register a user",
    description="Creates a user account. The first account registered becomes an admin.",
    responses=error_responses(409, 422, 500),
)
def register(payload: RegisterIn, db: Session = Depends(get_db)):
    if identity_taken(db, username=payload.username, email=payload.email):
        raise HTTPException(status_code=409, detail="Username or email already exists")

    has_users = db.execute(select(User.id).limit(1)).scalar_one_or_none() is not None
    user = User(
        username=payload.username,
        email=payload.email.lower(),
        full_name=payload.full_name,
        hashed_password=hash_password(payload.password),
        role="staff" if has_users else "admin",
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(status_code=409, detail="Username or email already exists") from exc

    log_event(logger, "auth.registered", user_id=user.id, role=user.role)
    return CreatedOut(id=user.id, message="User created successfully")


@router.post(
    "/login",
    response_model=TokenOut,
    summary="Login with JSON",
    description="Authenticate with username or email and password.",
    responses={**TOKEN_RESPONSE, **error_responses(401, 422, 429, 500)},
)
def login(payload: LoginIn, request: Request, db: Session = Depends(get_db)):
    return _login(db, request, payload.username, payload.password)


@router.post(
    "/token",
    response_model=TokenOut,
    summary="OAuth2 password token (Swagger Authorize)",
    description=(
        "Form-data login endpoint used by Swagger Authorize. "
        "Use your email or username in the `username` field."
    ),
    responses={**TOKEN_RESPONSE, **error_responses(401, 422, 429, 500)},
)
def login_for_swagger(
    request: Request,
    db: Session = Depends(get_db),
    form_data: OAuth2PasswordRequestForm = Depends(),
):
    return _login(db, request, form_data.username, form_data.password)


@router.get(
    "/me",
    response_model=UserProfileOut,
    summary="Get current user profile",
    responses=error_responses(401, 500),
)
def get_my_profile(user: User = Depends(get_current_user)):
    return UserProfileOut.model_validate(user)


@router.post(
    "/logout",
    response_model=MessageOut,
    summary="Logout",
    description="Access tokens are stateless; clients discard the token on logout.",
    responses=error_responses(401, 500),
)
def logout(token: str = Depends(oauth2_scheme), user: User = Depends(get_current_user)):
    meta = get_token_metadata(token, expected_type=ACCESS_TOKEN_TYPE)
    log_event(logger, "auth.logout", user_id=user.id, token_expires_at=meta.expires_at.isoformat())
    return MessageOut(message="Logged out successfully")

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from warehouse_api.models.user import User


def identity_taken(db: Session, *, username: str, email: str, exclude_user_id: str | None = None) -> bool:
    """True when another account already uses the username or email (case-insensitive)."""
    stmt = select(User.id).where(
        or_(
            func.lower(User.username) == username.lower(),
            func.lower(User.email) == email.lower(),
        )
    )
    if exclude_user_id:
        stmt = stmt.where(User.id != exclude_user_id)
    return db.execute(stmt.limit(1)).scalar_one_or_none() is not None

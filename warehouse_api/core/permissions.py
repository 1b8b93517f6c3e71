from collections.abc import Callable

from fastapi import Depends, HTTPException, status

from warehouse_api.core.security_current import get_current_user, is_admin
from warehouse_api.models.user import User

USER_ROLES = ("admin", "manager", "staff")


def require_roles(*allowed_roles: str) -> Callable[[User], User]:
    normalized_allowed = {role.strip().lower() for role in allowed_roles if role.strip()}
    if not normalized_allowed:
        raise ValueError("At least one allowed role is required")

    def dependency(user: User = Depends(get_current_user)) -> User:
        current_role = (user.role or "").lower()
        if current_role not in normalized_allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=(
                    "Admin access required"
                    if normalized_allowed == {"admin"}
                    else "Insufficient role for this action"
                ),
            )
        return user

    return dependency


def ensure_self_or_admin(user: User, target_user_id: str) -> None:
    if not is_admin(user) and user.id != target_user_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")

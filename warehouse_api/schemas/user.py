from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, field_validator

from warehouse_api.schemas.auth import RegisterIn, validate_password_length

UserRole = Literal["admin", "manager", "staff"]


class UserCreate(RegisterIn):
    role: UserRole = "staff"


class UserUpdate(BaseModel):
    username: Optional[str] = None
    email: Optional[EmailStr] = None
    full_name: Optional[str] = None
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None
    password: Optional[str] = None

    @field_validator("username", "full_name")
    @classmethod
    def normalize_optional_text(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        cleaned = value.strip()
        return cleaned or None

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: Optional[str]) -> Optional[str]:
        if not value:
            return None
        return validate_password_length(value)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "full_name": "Jane Keeper",
                "role": "manager",
                "is_active": True,
            }
        }
    )


class PasswordChangeIn(BaseModel):
    current_password: Optional[str] = None
    new_password: str

    @field_validator("new_password")
    @classmethod
    def validate_new_password(cls, value: str) -> str:
        return validate_password_length(value)

from datetime import datetime
from pydantic import BaseModel, ConfigDict, EmailStr, field_validator
from typing import Optional


def require_text(value: str, field_name: str) -> str:
    cleaned = value.strip()
    if not cleaned:
        raise ValueError(f"{field_name} is required")
    return cleaned


def validate_password_length(value: str) -> str:
    if len(value) < 8:
        raise ValueError("password must be at least 8 characters")
    return value


class RegisterIn(BaseModel):
    username: str
    email: EmailStr
    password: str
    full_name: str

    @field_validator("username")
    @classmethod
    def validate_username(cls, value: str) -> str:
        return require_text(value, "username")

    @field_validator("full_name")
    @classmethod
    def validate_full_name(cls, value: str) -> str:
        return require_text(value, "full_name")

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: str) -> str:
        return validate_password_length(value)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "username": "jane",
                "email": "jane@example.com",
                "password": "password123",
                "full_name": "Jane Keeper",
            }
        }
    )


class LoginIn(BaseModel):
    username: str
    password: str

    @field_validator("username")
    @classmethod
    def validate_username(cls, value: str) -> str:
        return require_text(value, "username")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "username": "jane",
                "password": "password123",
            }
        }
    )


class UserProfileOut(BaseModel):
    id: str
    username: str
    email: str
    full_name: Optional[str] = None
    role: str
    is_active: bool = True
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserProfileOut

"""User schemas."""
from typing import Optional
from pydantic import BaseModel, EmailStr, Field, field_validator

from fips_reporting.core.roles import normalize_role
from fips_reporting.models.user import UserRole


def _normalize_role(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    role = normalize_role(value)
    if role is None:
        raise ValueError(
            "Unknown role. Valid roles are: " + ", ".join(r.value for r in UserRole)
        )
    return role.value


class UserBase(BaseModel):
    email: EmailStr
    full_name: str


class UserCreate(UserBase):
    password: str = Field(..., min_length=8)
    role: str = UserRole.REPORTING_USER.value

    @field_validator("role")
    @classmethod
    def validate_role(cls, v: str) -> str:
        return _normalize_role(v)


class UserUpdate(BaseModel):
    email: EmailStr | None = None
    full_name: str | None = None
    role: str | None = None
    password: str | None = Field(None, min_length=8)
    is_active: bool | None = None

    @field_validator("role")
    @classmethod
    def validate_role(cls, v: Optional[str]) -> Optional[str]:
        return _normalize_role(v)


class UserResponse(UserBase):
    user_id: int
    role: str
    is_active: bool = True
    capabilities: dict = {}

    class Config:
        from_attributes = True


class Token(BaseModel):
    access_token: str
    token_type: str


class LoginRequest(BaseModel):
    email: EmailStr
    password: str

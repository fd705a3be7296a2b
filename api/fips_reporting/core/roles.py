"""Role normalization helpers and capability flags."""
from __future__ import annotations

from typing import Optional, Dict, TYPE_CHECKING

from fips_reporting.models.user import UserRole

if TYPE_CHECKING:
    from fips_reporting.models.user import User


ROLE_DISPLAY_TO_ROLE: Dict[str, UserRole] = {
    "admin": UserRole.ADMIN,
    "administrator": UserRole.ADMIN,
    "reporting user": UserRole.REPORTING_USER,
    "reporting_user": UserRole.REPORTING_USER,
    "user": UserRole.REPORTING_USER,
    "central operations": UserRole.CENTRAL_OPERATIONS,
    "central_operations": UserRole.CENTRAL_OPERATIONS,
}


def normalize_role(value: str | None) -> Optional[UserRole]:
    if not value:
        return None
    if isinstance(value, UserRole):
        return value
    return ROLE_DISPLAY_TO_ROLE.get(value.strip().lower())


def get_user_role(user: "User") -> Optional[UserRole]:
    return normalize_role(user.role)


def is_admin(user: "User") -> bool:
    return get_user_role(user) == UserRole.ADMIN


def is_central_operations(user: "User") -> bool:
    return get_user_role(user) == UserRole.CENTRAL_OPERATIONS


def can_view_all_products(user: "User") -> bool:
    """Admins and central operations can see every product's return."""
    return get_user_role(user) in {UserRole.ADMIN, UserRole.CENTRAL_OPERATIONS}


def build_capabilities(role: UserRole | None) -> dict:
    return {
        "is_admin": role == UserRole.ADMIN,
        "can_manage_metrics": role == UserRole.ADMIN,
        "can_manage_allocations": role == UserRole.ADMIN,
        "can_report": role in {UserRole.ADMIN, UserRole.REPORTING_USER},
        "can_view_all_products": role in {UserRole.ADMIN, UserRole.CENTRAL_OPERATIONS},
    }

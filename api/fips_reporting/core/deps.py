"""FastAPI dependencies."""
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from fips_reporting.core.database import get_db
from fips_reporting.core.roles import can_view_all_products, is_admin, is_central_operations
from fips_reporting.core.security import decode_token
from fips_reporting.models.reporting import ProductAllocation
from fips_reporting.models.user import User
from fips_reporting.services.product_directory import AssignedProduct, find_product_for_user

security = HTTPBearer()

READ_ONLY_DETAIL = "Central operations users have read-only access"


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """Get current authenticated user."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    payload = decode_token(credentials.credentials)
    if payload is None:
        raise credentials_exception

    email = payload.get("sub")
    if not email:
        raise credentials_exception

    user = db.query(User).filter(User.email == email).first()
    if user is None or not user.is_active:
        raise credentials_exception

    return user


def require_admin(current_user: User = Depends(get_current_user)) -> User:
    """Require admin role."""
    if not is_admin(current_user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )
    return current_user


def require_write_access(current_user: User) -> None:
    """Reject writes from central operations users, who may only view."""
    if is_central_operations(current_user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=READ_ONLY_DETAIL
        )


def resolve_product(db: Session, current_user: User, fips_id: str, for_update: bool = False) -> AssignedProduct:
    """Find a product the caller may access.

    Products allocated to the caller are accessible unless the caller is
    read-only. Admins may act on any allocated product; central operations
    may only view them.
    """
    if for_update:
        require_write_access(current_user)

    product = find_product_for_user(db, current_user.email, fips_id)
    if product:
        return product

    privileged = is_admin(current_user) if for_update else can_view_all_products(current_user)
    if not privileged:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Product is not allocated to you"
        )

    allocation = db.query(ProductAllocation).filter(
        ProductAllocation.product_id == fips_id
    ).order_by(ProductAllocation.allocation_id).first()
    if not allocation:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Product not found"
        )
    return AssignedProduct(
        product_id=allocation.product_id,
        product_name=allocation.product_name,
        phase=allocation.phase,
    )

"""Product allocation routes (Admin only)."""
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session
from fips_reporting.core.database import get_db
from fips_reporting.core.deps import require_admin
from fips_reporting.models.user import User
from fips_reporting.models.reporting import ProductAllocation
from fips_reporting.models.audit_log import AuditLog
from fips_reporting.schemas.product_allocation import ProductAllocationCreate, ProductAllocationResponse
from fips_reporting.services.product_directory import (
    DuplicateAllocationError,
    allocate_product,
    deallocate_product,
)

router = APIRouter()


def create_audit_log(db: Session, entity_type: str, entity_id: int, action: str, user_id: int, changes: dict = None):
    """Create an audit log entry for allocation changes."""
    audit_log = AuditLog(
        entity_type=entity_type,
        entity_id=entity_id,
        action=action,
        user_id=user_id,
        changes=changes
    )
    db.add(audit_log)


@router.get("/product-allocations", response_model=List[ProductAllocationResponse])
def list_product_allocations(
    user_email: Optional[str] = None,
    product_id: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """List allocations, optionally filtered by user email or product id."""
    query = db.query(ProductAllocation)
    if user_email:
        query = query.filter(func.lower(ProductAllocation.user_email) == user_email.strip().lower())
    if product_id:
        query = query.filter(ProductAllocation.product_id == product_id)
    return query.order_by(ProductAllocation.product_name, ProductAllocation.user_email).all()


@router.post("/product-allocations", response_model=ProductAllocationResponse, status_code=status.HTTP_201_CREATED)
def create_product_allocation(
    allocation_data: ProductAllocationCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """Allocate a product to a reporting user."""
    try:
        allocation = allocate_product(
            db,
            product_id=allocation_data.product_id,
            product_name=allocation_data.product_name,
            user_email=allocation_data.user_email,
            allocated_by=current_user.email,
            phase=allocation_data.phase,
        )
    except DuplicateAllocationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )

    create_audit_log(
        db=db,
        entity_type="ProductAllocation",
        entity_id=allocation.allocation_id,
        action="CREATE",
        user_id=current_user.user_id,
        changes={
            "product_id": allocation.product_id,
            "user_email": allocation.user_email
        }
    )
    db.commit()
    db.refresh(allocation)

    return allocation


@router.delete("/product-allocations/{allocation_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_product_allocation(
    allocation_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """Remove an allocation. Reported values for the product are kept."""
    allocation = db.query(ProductAllocation).filter(
        ProductAllocation.allocation_id == allocation_id
    ).first()

    if not allocation:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Product allocation not found"
        )

    create_audit_log(
        db=db,
        entity_type="ProductAllocation",
        entity_id=allocation.allocation_id,
        action="DELETE",
        user_id=current_user.user_id,
        changes={
            "product_id": allocation.product_id,
            "user_email": allocation.user_email
        }
    )
    deallocate_product(db, allocation)
    db.commit()

    return None

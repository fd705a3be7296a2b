"""Product directory service.

Answers "which FIPS products does this user report on?" from the
product_allocations table, which holds the product data contract normally
supplied by the content-management service (product id, title, phase and
contact email).
"""
import logging
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from fips_reporting.models.reporting import ProductAllocation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AssignedProduct:
    product_id: str
    product_name: str
    phase: Optional[str] = None


class DuplicateAllocationError(ValueError):
    """Raised when a product is already allocated to the user."""


def get_products_for_user(db: Session, user_email: str) -> List[AssignedProduct]:
    """
    Return the products allocated to a user, ordered by product name.

    Email matching is case-insensitive.

    Args:
        db: Database session
        user_email: Email of the reporting user

    Returns:
        List of AssignedProduct (empty if nothing is allocated)
    """
    allocations = db.query(ProductAllocation).filter(
        func.lower(ProductAllocation.user_email) == user_email.strip().lower()
    ).order_by(ProductAllocation.product_name, ProductAllocation.product_id).all()

    return [
        AssignedProduct(
            product_id=allocation.product_id,
            product_name=allocation.product_name,
            phase=allocation.phase,
        )
        for allocation in allocations
    ]


def find_product_for_user(db: Session, user_email: str, product_id: str) -> Optional[AssignedProduct]:
    return next(
        (p for p in get_products_for_user(db, user_email) if p.product_id == product_id),
        None
    )


def get_product_owners(db: Session, product_id: str) -> List[str]:
    """Emails of every user the product is allocated to."""
    allocations = db.query(ProductAllocation).filter(
        ProductAllocation.product_id == product_id
    ).order_by(ProductAllocation.allocation_id).all()
    return [allocation.user_email for allocation in allocations]


def allocate_product(
    db: Session,
    product_id: str,
    product_name: str,
    user_email: str,
    allocated_by: str,
    phase: Optional[str] = None,
) -> ProductAllocation:
    """Allocate a product to a user. Raises DuplicateAllocationError if already allocated."""
    email = user_email.strip().lower()
    existing = db.query(ProductAllocation).filter(
        ProductAllocation.product_id == product_id,
        func.lower(ProductAllocation.user_email) == email
    ).first()
    if existing:
        raise DuplicateAllocationError(
            f"Product {product_id} is already allocated to {email}"
        )

    allocation = ProductAllocation(
        product_id=product_id,
        product_name=product_name,
        phase=phase,
        user_email=email,
        allocated_by=allocated_by,
    )
    try:
        with db.begin_nested():
            db.add(allocation)
    except IntegrityError as exc:
        raise DuplicateAllocationError(
            f"Product {product_id} is already allocated to {email}"
        ) from exc

    logger.info("Allocated product %s to %s", product_id, email)
    return allocation


def deallocate_product(db: Session, allocation: ProductAllocation) -> None:
    logger.info("Deallocated product %s from %s", allocation.product_id, allocation.user_email)
    db.delete(allocation)

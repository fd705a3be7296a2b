"""Authentication and user administration routes."""
import logging
from typing import List
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session
from fips_reporting.core.database import get_db
from fips_reporting.core.security import verify_password, create_access_token, get_password_hash
from fips_reporting.core.deps import get_current_user, require_admin
from fips_reporting.core.roles import build_capabilities, get_user_role
from fips_reporting.models.audit_log import AuditLog
from fips_reporting.models.user import User, UserRole
from fips_reporting.schemas.user import LoginRequest, Token, UserCreate, UserResponse, UserUpdate

logger = logging.getLogger(__name__)

router = APIRouter()


def create_audit_log(db: Session, entity_type: str, entity_id: int, action: str, user_id: int, changes: dict = None):
    """Create an audit log entry for user administration."""
    audit_log = AuditLog(
        entity_type=entity_type,
        entity_id=entity_id,
        action=action,
        user_id=user_id,
        changes=changes
    )
    db.add(audit_log)


def get_user_response(user: User) -> dict:
    """Convert user to response dict with capability flags."""
    role = get_user_role(user)
    return {
        "user_id": user.user_id,
        "email": user.email,
        "full_name": user.full_name,
        "role": role.value if role else user.role,
        "is_active": user.is_active,
        "capabilities": build_capabilities(role),
    }


def _find_user_by_email(db: Session, email: str):
    return db.query(User).filter(func.lower(User.email) == email.strip().lower()).first()


def _get_user_or_404(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.user_id == user_id).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )
    return user


@router.post("/login", response_model=Token)
def login(login_data: LoginRequest, db: Session = Depends(get_db)):
    """Login endpoint."""
    user = _find_user_by_email(db, login_data.email)

    if not user or not user.is_active or not verify_password(login_data.password, user.password_hash):
        logger.warning("Failed login attempt for %s", login_data.email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password"
        )

    access_token = create_access_token(data={"sub": user.email})
    return {"access_token": access_token, "token_type": "bearer"}


@router.get("/me", response_model=UserResponse)
def get_me(current_user: User = Depends(get_current_user)):
    """Get current user."""
    return get_user_response(current_user)


# ============================================================================
# USER ADMINISTRATION - Admin only
# ============================================================================

@router.get("/users", response_model=List[UserResponse])
def list_users(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """List all users."""
    users = db.query(User).order_by(User.email).all()
    return [get_user_response(u) for u in users]


@router.get("/users/{user_id}", response_model=UserResponse)
def get_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """Get a user by ID."""
    return get_user_response(_get_user_or_404(db, user_id))


@router.post("/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    user_data: UserCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """Create a user."""
    if _find_user_by_email(db, user_data.email):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered"
        )

    user = User(
        email=user_data.email.lower(),
        full_name=user_data.full_name,
        password_hash=get_password_hash(user_data.password),
        role=user_data.role
    )
    db.add(user)
    db.flush()  # Get user_id before creating audit log

    create_audit_log(
        db=db,
        entity_type="User",
        entity_id=user.user_id,
        action="CREATE",
        user_id=current_user.user_id,
        changes={
            "email": user.email,
            "full_name": user.full_name,
            "role": user.role
        }
    )
    db.commit()
    db.refresh(user)
    logger.info("User %s created by %s", user.email, current_user.email)

    return get_user_response(user)


@router.patch("/users/{user_id}", response_model=UserResponse)
def update_user(
    user_id: int,
    user_data: UserUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """Update a user. Admins cannot remove their own admin access or deactivate themselves."""
    user = _get_user_or_404(db, user_id)
    update_data = {k: v for k, v in user_data.model_dump(exclude_unset=True).items() if v is not None}

    if user.user_id == current_user.user_id and (
        update_data.get("is_active") is False
        or update_data.get("role", UserRole.ADMIN.value) != UserRole.ADMIN.value
    ):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot remove your own admin access"
        )

    # Check for email uniqueness if email is being updated
    if "email" in update_data:
        update_data["email"] = update_data["email"].lower()
        existing = _find_user_by_email(db, update_data["email"])
        if existing and existing.user_id != user.user_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Email already registered"
            )

    # Track changes for audit log
    changes = {}

    # Hash password if provided (but don't log the actual password)
    if "password" in update_data:
        user.password_hash = get_password_hash(update_data.pop("password"))
        changes["password"] = "changed"

    for field, value in update_data.items():
        old_value = getattr(user, field)
        if old_value != value:
            changes[field] = {"old": old_value, "new": value}
            setattr(user, field, value)

    if changes:
        create_audit_log(
            db=db,
            entity_type="User",
            entity_id=user.user_id,
            action="UPDATE",
            user_id=current_user.user_id,
            changes=changes
        )
    db.commit()
    db.refresh(user)

    return get_user_response(user)

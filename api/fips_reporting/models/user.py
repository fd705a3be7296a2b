"""User model."""
import enum
from sqlalchemy import String, Integer, Boolean
from sqlalchemy.orm import Mapped, mapped_column
from fips_reporting.models.base import Base


class UserRole(str, enum.Enum):
    """User roles."""
    ADMIN = "Admin"
    REPORTING_USER = "Reporting User"
    CENTRAL_OPERATIONS = "Central Operations"


class User(Base):
    """Portal user. Email is the identity used on reported values and submissions."""
    __tablename__ = "users"

    user_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    email: Mapped[str] = mapped_column(
        String(255), unique=True, nullable=False)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[UserRole] = mapped_column(
        String(50), nullable=False, default=UserRole.REPORTING_USER)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

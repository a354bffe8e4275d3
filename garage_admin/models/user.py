"""
Profile model for database.
"""
from sqlalchemy import Boolean, Column, String, DateTime
from sqlalchemy.sql import func
from garage_admin.database import Base
import enum


class UserRole(str, enum.Enum):
    """User role enumeration."""
    ADMIN = "admin"
    MECHANIC = "mechanic"
    SECRETARY = "secretary"


class Profile(Base):
    """Profile of an identity issued by the external provider."""

    __tablename__ = "profiles"

    id = Column(String, primary_key=True, index=True)
    email = Column(String, nullable=False, default="")
    full_name = Column(String, nullable=True)
    # Kept as free text; parsed with permissions.normalize_role on every read
    role = Column(String, nullable=True)
    # True only on the profile that bootstrapped the store; NULL everywhere else
    bootstrap = Column(Boolean, unique=True, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

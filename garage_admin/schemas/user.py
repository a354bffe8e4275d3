"""
Pydantic schemas for identities and profiles.
"""
from pydantic import BaseModel, ConfigDict
from datetime import datetime
from typing import Optional

from garage_admin.models.user import UserRole


class Identity(BaseModel):
    """Identity read from the provider's token."""
    user_id: str
    email: str = ""
    full_name: Optional[str] = None


class Profile(BaseModel):
    """Schema for profile responses."""
    id: str
    email: str
    full_name: Optional[str] = None
    role: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class RoleUpdate(BaseModel):
    """Schema for an admin-issued role change."""
    role: UserRole


class PermissionsOut(BaseModel):
    can_view_dashboard: bool
    can_view_customers: bool
    can_view_services: bool
    can_view_financials: bool
    can_manage_users: bool
    can_edit_customers: bool
    can_edit_services: bool
    role: Optional[UserRole] = None


class Me(BaseModel):
    """Current profile with its resolved permissions."""
    profile: Profile
    permissions: PermissionsOut
    fallback: bool = False


class Token(BaseModel):
    """Schema for authentication token."""
    access_token: str
    token_type: str

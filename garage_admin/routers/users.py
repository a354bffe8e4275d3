"""
Profile and role management routes.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from garage_admin.auth import get_current_profile, get_permissions
from garage_admin.database import get_db
from garage_admin.permissions import Permissions
from garage_admin.schemas.user import Me, Profile, RoleUpdate
from garage_admin.services import profiles
from garage_admin.services.profiles import LoadedProfile

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=Me)
async def get_me(current: LoadedProfile = Depends(get_current_profile)):
    """
    Current profile and the permissions resolved from its role.
    """
    return Me(
        profile=Profile.model_validate(current.profile),
        permissions=current.permissions.as_dict(),
        fallback=current.fallback,
    )


@router.get("/", response_model=List[Profile])
async def get_users(
    db: AsyncSession = Depends(get_db),
    permissions: Permissions = Depends(get_permissions),
):
    """
    List every profile, newest first.
    """
    return await profiles.list_profiles(db, permissions)


@router.put("/{user_id}/role", response_model=Profile)
async def update_user_role(
    user_id: str,
    role_update: RoleUpdate,
    db: AsyncSession = Depends(get_db),
    permissions: Permissions = Depends(get_permissions),
):
    """
    Change a user's role.
    """
    return await profiles.update_role(db, permissions, user_id, role_update.role)

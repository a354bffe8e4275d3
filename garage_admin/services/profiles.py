"""
Profile store access: the source of every identity's role.

``load_profile`` never raises on store trouble. When the lookup times out or
fails it returns a fallback profile whose role comes from
``settings.profile_fallback_role`` (no role by default), so the resolver
fails closed instead of blocking the request.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from garage_admin.config import get_settings
from garage_admin.exceptions import QueryTimeoutError, RecordNotFoundError, StoreError
from garage_admin.models.user import Profile, UserRole
from garage_admin.permissions import Permissions, normalize_role, resolve
from garage_admin.schemas.user import Identity
from garage_admin.services.store import call_store, commit_store

logger = logging.getLogger(__name__)


@dataclass
class LoadedProfile:
    profile: Profile
    permissions: Permissions
    fallback: bool = False


def fallback_profile(identity: Identity) -> Profile:
    settings = get_settings()
    role = normalize_role(settings.profile_fallback_role)
    return Profile(
        id=identity.user_id,
        email=identity.email,
        full_name=identity.full_name or "",
        role=role.value if role else None,
    )


async def _store_is_empty(db: AsyncSession) -> bool:
    count = await db.scalar(select(func.count()).select_from(Profile))
    return not count


async def _insert_profile(db: AsyncSession, identity: Identity, role: Optional[UserRole],
                          bootstrap: bool = False) -> Profile:
    logger.info("Creating profile for %s with role %s", identity.user_id, role)
    profile = Profile(
        id=identity.user_id,
        email=identity.email,
        full_name=identity.full_name or "",
        role=role.value if role else None,
        bootstrap=True if bootstrap else None,
    )
    db.add(profile)
    await db.commit()
    await db.refresh(profile)
    return profile


async def get_or_create_profile(db: AsyncSession, identity: Identity) -> Profile:
    """Stored profile of the identity, created on first sign-in.

    The first profile in an empty store bootstraps the admin account. The
    claim goes through the unique ``bootstrap`` column, so when two first
    sign-ins race only one of them becomes admin; the other gets the
    default role.
    """
    result = await db.execute(select(Profile).where(Profile.id == identity.user_id))
    profile = result.scalar_one_or_none()
    if profile is not None:
        return profile

    if await _store_is_empty(db):
        try:
            return await _insert_profile(db, identity, UserRole.ADMIN, bootstrap=True)
        except IntegrityError:
            await db.rollback()
            logger.info("Bootstrap admin already claimed, %s gets the default role", identity.user_id)
            result = await db.execute(select(Profile).where(Profile.id == identity.user_id))
            profile = result.scalar_one_or_none()
            if profile is not None:
                return profile

    return await _insert_profile(db, identity, normalize_role(get_settings().default_role))


async def load_profile(db: AsyncSession, identity: Identity) -> LoadedProfile:
    """Fetch (or create) the profile and resolve its permissions."""
    settings = get_settings()
    try:
        profile = await call_store(
            get_or_create_profile(db, identity),
            timeout=settings.profile_fetch_timeout,
            operation="profile fetch",
        )
    except (QueryTimeoutError, StoreError) as e:
        logger.error("Profile fetch failed for %s, using fallback profile: %s", identity.user_id, e)
        await db.rollback()
        profile = fallback_profile(identity)
        return LoadedProfile(profile=profile, permissions=resolve(profile.role), fallback=True)

    return LoadedProfile(profile=profile, permissions=resolve(profile.role))


async def list_profiles(db: AsyncSession, permissions: Permissions) -> List[Profile]:
    permissions.require("can_manage_users")
    settings = get_settings()
    result = await call_store(
        db.execute(select(Profile).order_by(Profile.created_at.desc(), Profile.id)),
        timeout=settings.query_timeout,
        operation="profile list",
    )
    return list(result.scalars().all())


async def update_role(
    db: AsyncSession,
    permissions: Permissions,
    user_id: str,
    role: UserRole,
) -> Profile:
    """Admin-issued role change. Permissions follow on the next resolve."""
    permissions.require("can_manage_users")
    settings = get_settings()

    result = await call_store(
        db.execute(select(Profile).where(Profile.id == user_id)),
        timeout=settings.query_timeout,
        operation="profile lookup",
    )
    profile: Optional[Profile] = result.scalar_one_or_none()
    if profile is None:
        raise RecordNotFoundError("Profile not found")

    profile.role = UserRole(role).value
    await commit_store(db, timeout=settings.query_timeout, operation="role update")
    await db.refresh(profile)
    logger.info("Role of %s changed to %s", user_id, profile.role)
    return profile

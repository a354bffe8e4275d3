"""
Service tests for the profile store: bootstrap roles, fail-closed fallback,
and admin-only role changes.
"""
import asyncio

import pytest
from sqlalchemy import select

from garage_admin.config import get_settings
from garage_admin.exceptions import PermissionDeniedError, RecordNotFoundError
from garage_admin.models.user import Profile, UserRole
from garage_admin.permissions import NO_PERMISSIONS, resolve
from garage_admin.schemas.user import Identity
from garage_admin.services import profiles


async def test_first_profile_is_admin_then_default_role(db):
    first = await profiles.load_profile(db, Identity(user_id="owner", email="owner@garage.test"))
    assert first.profile.role == "admin"
    assert first.permissions == resolve("admin")
    assert not first.fallback

    second = await profiles.load_profile(db, Identity(user_id="desk", email="desk@garage.test"))
    assert second.profile.role == "secretary"
    assert second.permissions.can_view_customers
    assert not second.permissions.can_edit_customers


async def test_existing_profile_is_read_not_recreated(db):
    db.add(Profile(id="mech", email="mech@garage.test", role="mechanic"))
    await db.commit()
    loaded = await profiles.load_profile(db, Identity(user_id="mech"))
    assert loaded.permissions.role is UserRole.MECHANIC


async def test_garbage_role_in_store_resolves_to_nothing(db):
    db.add(Profile(id="odd", email="odd@garage.test", role="superuser"))
    await db.commit()
    loaded = await profiles.load_profile(db, Identity(user_id="odd"))
    assert loaded.permissions == NO_PERMISSIONS


class HangingSession:
    def __init__(self):
        self.rolled_back = False

    async def execute(self, statement):
        await asyncio.sleep(5)

    async def rollback(self):
        self.rolled_back = True


async def test_profile_timeout_falls_back_closed(monkeypatch):
    monkeypatch.setattr(get_settings(), "profile_fetch_timeout", 0.05)
    session = HangingSession()
    loaded = await profiles.load_profile(session, Identity(user_id="someone", email="s@garage.test"))
    assert loaded.fallback
    assert loaded.profile.id == "someone"
    assert loaded.permissions == NO_PERMISSIONS
    assert session.rolled_back


async def test_fallback_role_is_configurable(monkeypatch):
    monkeypatch.setattr(get_settings(), "profile_fetch_timeout", 0.05)
    monkeypatch.setattr(get_settings(), "profile_fallback_role", "secretary")
    loaded = await profiles.load_profile(HangingSession(), Identity(user_id="someone"))
    assert loaded.permissions == resolve("secretary")


async def test_role_change_requires_manage_users(db, admin, mechanic):
    await profiles.load_profile(db, Identity(user_id="owner"))
    await profiles.load_profile(db, Identity(user_id="desk"))

    with pytest.raises(PermissionDeniedError):
        await profiles.update_role(db, mechanic, "desk", UserRole.ADMIN)
    with pytest.raises(PermissionDeniedError):
        await profiles.list_profiles(db, mechanic)

    updated = await profiles.update_role(db, admin, "desk", UserRole.MECHANIC)
    assert updated.role == "mechanic"

    reloaded = await profiles.load_profile(db, Identity(user_id="desk"))
    assert reloaded.permissions == resolve("mechanic")

    assert {p.id for p in await profiles.list_profiles(db, admin)} == {"owner", "desk"}

    with pytest.raises(RecordNotFoundError):
        await profiles.update_role(db, admin, "nobody", UserRole.ADMIN)


async def test_get_or_create_profile_returns_stored_row(db):
    created = await profiles.get_or_create_profile(db, Identity(user_id="owner", email="owner@garage.test"))
    again = await profiles.get_or_create_profile(db, Identity(user_id="owner"))
    assert again.id == created.id
    assert again.role == "admin"
    assert again.bootstrap is True


async def test_only_one_concurrent_first_sign_in_becomes_admin(db, monkeypatch):
    await profiles.get_or_create_profile(db, Identity(user_id="owner", email="owner@garage.test"))

    # Both sign-ins saw an empty store before either committed
    async def store_looked_empty(session):
        return True

    monkeypatch.setattr(profiles, "_store_is_empty", store_looked_empty)
    late = await profiles.get_or_create_profile(db, Identity(user_id="desk", email="desk@garage.test"))
    assert late.role == "secretary"
    assert late.bootstrap is None

    result = await db.execute(select(Profile).where(Profile.role == "admin"))
    assert [p.id for p in result.scalars().all()] == ["owner"]

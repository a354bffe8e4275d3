"""
Role-based access control.

Each role maps to a fixed set of seven capability flags. ``resolve`` is the
only way to build a ``Permissions`` value, so the flags always come from a
single role and are never partially applied. Anything that is not a known
role (missing profile, unknown text in the profile store) resolves to the
empty capability set.

Services receive the ``Permissions`` value as an explicit argument and call
``require`` before doing gated work.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from typing import Optional, Union

from garage_admin.exceptions import PermissionDeniedError
from garage_admin.models.user import UserRole

logger = logging.getLogger(__name__)


CAPABILITIES = (
    "can_view_dashboard",
    "can_view_customers",
    "can_view_services",
    "can_view_financials",
    "can_manage_users",
    "can_edit_customers",
    "can_edit_services",
)


@dataclass(frozen=True)
class Permissions:
    """Capability set of one identity.

    Attributes:
        can_view_dashboard:  dashboard counters and recent work orders
        can_view_customers:  customer and vehicle lists and details
        can_view_services:   work order lists and details
        can_view_financials: money fields, revenue aggregates and reports
        can_manage_users:    profile list and role changes
        can_edit_customers:  create/update/delete customers and vehicles
        can_edit_services:   create/update/delete work orders
        role:                the role the flags were resolved from
    """
    can_view_dashboard: bool
    can_view_customers: bool
    can_view_services: bool
    can_view_financials: bool
    can_manage_users: bool
    can_edit_customers: bool
    can_edit_services: bool
    role: Optional[UserRole] = None

    def allows(self, capability: str) -> bool:
        if capability not in CAPABILITIES:
            raise ValueError(f"Unknown capability: {capability}")
        return getattr(self, capability)

    def require(self, capability: str) -> None:
        """Raise PermissionDeniedError unless the capability is granted."""
        if not self.allows(capability):
            logger.warning(
                "Denied %s for role %s",
                capability,
                self.role.value if self.role else None,
            )
            raise PermissionDeniedError(
                f"Forbidden: role lacks {capability}", capability=capability
            )

    def as_dict(self) -> dict:
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data["role"] = self.role.value if self.role else None
        return data


NO_PERMISSIONS = Permissions(
    can_view_dashboard=False,
    can_view_customers=False,
    can_view_services=False,
    can_view_financials=False,
    can_manage_users=False,
    can_edit_customers=False,
    can_edit_services=False,
    role=None,
)


def normalize_role(value: Union[UserRole, str, None]) -> Optional[UserRole]:
    """Parse a stored role. Unknown or empty values become None."""
    if value is None:
        return None
    if isinstance(value, UserRole):
        return value
    try:
        return UserRole(str(value).strip().lower())
    except ValueError:
        logger.warning("Unknown role %r treated as no role", value)
        return None


def resolve(role: Union[UserRole, str, None]) -> Permissions:
    """Map a role to its full capability set."""
    role = normalize_role(role)

    if role is UserRole.ADMIN:
        return Permissions(
            can_view_dashboard=True,
            can_view_customers=True,
            can_view_services=True,
            can_view_financials=True,
            can_manage_users=True,
            can_edit_customers=True,
            can_edit_services=True,
            role=role,
        )
    if role in (UserRole.MECHANIC, UserRole.SECRETARY):
        return Permissions(
            can_view_dashboard=True,
            can_view_customers=True,
            can_view_services=True,
            can_view_financials=False,
            can_manage_users=False,
            can_edit_customers=False,
            can_edit_services=False,
            role=role,
        )
    return NO_PERMISSIONS

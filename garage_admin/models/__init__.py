"""
SQLAlchemy database models.
"""
from garage_admin.models.customer import Customer
from garage_admin.models.vehicle import Vehicle
from garage_admin.models.service import ServiceRecord
from garage_admin.models.user import Profile, UserRole

__all__ = ["Customer", "Vehicle", "ServiceRecord", "Profile", "UserRole"]

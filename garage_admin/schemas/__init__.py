"""
Pydantic schemas for request/response validation.
"""
from garage_admin.schemas.customer import CustomerBase, CustomerCreate, CustomerUpdate, Customer
from garage_admin.schemas.vehicle import VehicleBase, VehicleCreate, VehicleUpdate, Vehicle
from garage_admin.schemas.service import ServiceLine, WorkOrderCreate, WorkOrder, ExportBundle
from garage_admin.schemas.user import Identity, Profile, RoleUpdate, Me
from garage_admin.schemas.search import Page, RevenueSummary

__all__ = [
    "CustomerBase", "CustomerCreate", "CustomerUpdate", "Customer",
    "VehicleBase", "VehicleCreate", "VehicleUpdate", "Vehicle",
    "ServiceLine", "WorkOrderCreate", "WorkOrder", "ExportBundle",
    "Identity", "Profile", "RoleUpdate", "Me",
    "Page", "RevenueSummary",
]

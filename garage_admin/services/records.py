"""
Customer and vehicle record operations.

Viewing needs ``can_view_customers``; every write needs ``can_edit_customers``.
Deleting a customer removes its vehicles and their work orders through the
relationship cascade and the ``ON DELETE CASCADE`` foreign keys.
"""
import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from garage_admin.config import get_settings
from garage_admin.exceptions import DuplicateRecordError, RecordNotFoundError
from garage_admin.models.customer import Customer
from garage_admin.models.vehicle import Vehicle
from garage_admin.permissions import Permissions
from garage_admin.schemas.customer import CustomerCreate, CustomerUpdate
from garage_admin.schemas.vehicle import VehicleCreate, VehicleUpdate
from garage_admin.services.store import call_store, commit_store

logger = logging.getLogger(__name__)


async def _commit(db: AsyncSession, operation: str) -> None:
    await commit_store(db, timeout=get_settings().query_timeout, operation=operation)


async def _execute(db: AsyncSession, stmt, operation: str):
    return await call_store(db.execute(stmt), timeout=get_settings().query_timeout, operation=operation)


# ---------------------------------------------------------------------------
# Customers
# ---------------------------------------------------------------------------

async def _load_customer(db: AsyncSession, customer_id: int) -> Customer:
    stmt = (
        select(Customer)
        .where(Customer.id == customer_id)
        .options(selectinload(Customer.vehicles))
        .execution_options(populate_existing=True)
    )
    result = await _execute(db, stmt, "customer lookup")
    customer = result.scalar_one_or_none()
    if customer is None:
        raise RecordNotFoundError("Customer not found")
    return customer


async def _check_email_free(db: AsyncSession, email: str, customer_id: Optional[int] = None) -> None:
    stmt = select(Customer.id).where(Customer.email == email)
    if customer_id is not None:
        stmt = stmt.where(Customer.id != customer_id)
    result = await _execute(db, stmt, "customer email check")
    if result.first() is not None:
        raise DuplicateRecordError("Email already registered")


async def get_customer(db: AsyncSession, permissions: Permissions, customer_id: int) -> Customer:
    permissions.require("can_view_customers")
    return await _load_customer(db, customer_id)


async def create_customer(db: AsyncSession, permissions: Permissions, data: CustomerCreate,
                          user_id: Optional[str] = None) -> Customer:
    permissions.require("can_edit_customers")
    await _check_email_free(db, data.email)

    customer = Customer(**data.model_dump(), user_id=user_id)
    db.add(customer)
    await _commit(db, "creating customer")
    logger.info("Created customer %s", customer.id)
    return await _load_customer(db, customer.id)


async def update_customer(db: AsyncSession, permissions: Permissions, customer_id: int,
                          data: CustomerUpdate) -> Customer:
    permissions.require("can_edit_customers")
    customer = await _load_customer(db, customer_id)

    # Update only provided fields
    update_data = data.model_dump(exclude_unset=True)
    if update_data.get("email") and update_data["email"] != customer.email:
        await _check_email_free(db, update_data["email"], customer_id)
    for field, value in update_data.items():
        setattr(customer, field, value)

    await _commit(db, "updating customer")
    return await _load_customer(db, customer_id)


async def delete_customer(db: AsyncSession, permissions: Permissions, customer_id: int) -> None:
    permissions.require("can_edit_customers")
    stmt = (
        select(Customer)
        .where(Customer.id == customer_id)
        .options(selectinload(Customer.vehicles).selectinload(Vehicle.service_records))
    )
    customer = (await _execute(db, stmt, "customer lookup")).scalar_one_or_none()
    if customer is None:
        raise RecordNotFoundError("Customer not found")

    await db.delete(customer)
    await _commit(db, "deleting customer")
    logger.info("Deleted customer %s", customer_id)


# ---------------------------------------------------------------------------
# Vehicles
# ---------------------------------------------------------------------------

async def _check_plate_free(db: AsyncSession, plate: Optional[str], vehicle_id: Optional[int] = None) -> None:
    if not plate:
        return
    stmt = select(Vehicle.id).where(Vehicle.license_plate == plate)
    if vehicle_id is not None:
        stmt = stmt.where(Vehicle.id != vehicle_id)
    if (await _execute(db, stmt, "license plate check")).first() is not None:
        raise DuplicateRecordError("License plate already registered")


async def _load_vehicle(db: AsyncSession, vehicle_id: int) -> Vehicle:
    stmt = select(Vehicle).where(Vehicle.id == vehicle_id).execution_options(populate_existing=True)
    vehicle = (await _execute(db, stmt, "vehicle lookup")).scalar_one_or_none()
    if vehicle is None:
        raise RecordNotFoundError("Vehicle not found")
    return vehicle


async def list_vehicles(db: AsyncSession, permissions: Permissions,
                        customer_id: Optional[int] = None) -> List[Vehicle]:
    permissions.require("can_view_customers")
    stmt = select(Vehicle).order_by(Vehicle.make, Vehicle.model, Vehicle.id)
    if customer_id is not None:
        stmt = stmt.where(Vehicle.customer_id == customer_id)
    result = await _execute(db, stmt, "vehicle list")
    return list(result.scalars().all())


async def get_vehicle(db: AsyncSession, permissions: Permissions, vehicle_id: int) -> Vehicle:
    permissions.require("can_view_customers")
    return await _load_vehicle(db, vehicle_id)


async def create_vehicle(db: AsyncSession, permissions: Permissions, data: VehicleCreate) -> Vehicle:
    permissions.require("can_edit_customers")
    if await call_store(db.get(Customer, data.customer_id), timeout=get_settings().query_timeout,
                        operation="customer lookup") is None:
        raise RecordNotFoundError("Customer not found")
    await _check_plate_free(db, data.license_plate)

    vehicle = Vehicle(**data.model_dump())
    db.add(vehicle)
    await _commit(db, "creating vehicle")
    logger.info("Created vehicle %s (%s) for customer %s", vehicle.id, vehicle.label, data.customer_id)
    return await _load_vehicle(db, vehicle.id)


async def update_vehicle(db: AsyncSession, permissions: Permissions, vehicle_id: int,
                         data: VehicleUpdate) -> Vehicle:
    permissions.require("can_edit_customers")
    vehicle = await _load_vehicle(db, vehicle_id)

    update_data = data.model_dump(exclude_unset=True)
    if "license_plate" in update_data:
        await _check_plate_free(db, update_data["license_plate"], vehicle_id)
    for field, value in update_data.items():
        setattr(vehicle, field, value)

    await _commit(db, "updating vehicle")
    return await _load_vehicle(db, vehicle_id)


async def delete_vehicle(db: AsyncSession, permissions: Permissions, vehicle_id: int) -> None:
    permissions.require("can_edit_customers")
    stmt = (
        select(Vehicle)
        .where(Vehicle.id == vehicle_id)
        .options(selectinload(Vehicle.service_records))
    )
    vehicle = (await _execute(db, stmt, "vehicle lookup")).scalar_one_or_none()
    if vehicle is None:
        raise RecordNotFoundError("Vehicle not found")

    await db.delete(vehicle)
    await _commit(db, "deleting vehicle")
    logger.info("Deleted vehicle %s", vehicle_id)

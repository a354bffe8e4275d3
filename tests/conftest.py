import os
import tempfile

# Settings are read once, so the test database has to be chosen before any import
_DB_DIR = tempfile.mkdtemp(prefix="garage-admin-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_DB_DIR}/garage.db"
os.environ.setdefault("SECRET_KEY", "test-secret")

from datetime import date  # noqa: E402
from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402

from garage_admin.database import AsyncSessionLocal, drop_db, init_db  # noqa: E402
from garage_admin.models.customer import Customer  # noqa: E402
from garage_admin.models.service import ServiceRecord  # noqa: E402
from garage_admin.models.vehicle import Vehicle  # noqa: E402
from garage_admin.permissions import resolve  # noqa: E402
from garage_admin.schemas.service import WorkOrderCreate  # noqa: E402
from garage_admin.services.work_orders import WorkOrderAggregate  # noqa: E402


@pytest.fixture
async def db():
    """A clean database per test."""
    await init_db()
    async with AsyncSessionLocal() as session:
        yield session
    await drop_db()


@pytest.fixture
def admin():
    return resolve("admin")


@pytest.fixture
def mechanic():
    return resolve("mechanic")


@pytest.fixture
def secretary():
    return resolve("secretary")


async def add_customer(db, name, email=None, phone="555-0100", vehicles=()):
    """Insert a customer and its vehicles. ``vehicles`` holds (make, model, year, plate)."""
    customer = Customer(
        name=name,
        email=email or f"{name.lower().replace(' ', '.')}@example.com",
        phone=phone,
        address="1 Garage Road",
    )
    for make, model, year, plate in vehicles:
        customer.vehicles.append(Vehicle(make=make, model=model, year=year, license_plate=plate))
    db.add(customer)
    await db.commit()
    return customer


async def add_work_orders(db, vehicle_id, orders):
    """Insert finalized work orders. ``orders`` holds (date, lines, notes)."""
    records = []
    for day, lines, notes in orders:
        data = WorkOrderCreate(vehicle_id=vehicle_id, date=day, mileage=10000, notes=notes, services=lines)
        aggregate = WorkOrderAggregate(data, vat_rate=Decimal("0.24"))
        aggregate.validate()
        records.append(ServiceRecord(**aggregate.finalize().as_row()))
    db.add_all(records)
    await db.commit()
    return records


def line(description, quantity=1, unit_price="0"):
    return {"description": description, "quantity": quantity, "unit_price": unit_price}


TODAY = date(2026, 10, 19)

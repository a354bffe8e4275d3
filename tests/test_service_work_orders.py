"""
Service tests for the work order aggregate: validation gating, derived fields,
create-or-update persistence and failure handling.
"""
import asyncio
from decimal import Decimal

import pytest
from pydantic import ValidationError
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from conftest import TODAY, add_customer, line
from garage_admin.config import get_settings
from garage_admin.exceptions import (
    PermissionDeniedError,
    QueryTimeoutError,
    RecordNotFoundError,
    StoreError,
    WorkOrderValidationError,
)
from garage_admin.models.service import ServiceRecord
from garage_admin.schemas.service import WorkOrderCreate
from garage_admin.services import work_orders
from garage_admin.services.work_orders import (
    WorkOrderAggregate,
    WorkOrderState,
    summarize_description,
)


class NoStoreSession:
    """Any store access fails the test."""

    def __getattr__(self, name):
        raise AssertionError(f"store was called: {name}")


def order(**kwargs):
    kwargs.setdefault("date", TODAY)
    return WorkOrderCreate(**kwargs)


@pytest.mark.parametrize(
    "data",
    [
        order(vehicle_id=None, services=[line("Oil change")]),
        order(vehicle_id=1, services=[]),
        order(vehicle_id=1, services=[line(""), line("   ")]),
    ],
)
async def test_invalid_work_orders_never_reach_the_store(data, admin):
    aggregate = WorkOrderAggregate(data)
    with pytest.raises(WorkOrderValidationError):
        await aggregate.save(NoStoreSession(), admin)
    assert aggregate.state is WorkOrderState.INVALID


def test_blank_descriptions_message():
    aggregate = WorkOrderAggregate(order(vehicle_id=1, services=[line(" ")]))
    with pytest.raises(WorkOrderValidationError) as exc:
        aggregate.validate()
    assert "description" in exc.value.message


def test_defaults_do_not_block_validity():
    aggregate = WorkOrderAggregate(order(vehicle_id=1, services=[{"description": "Oil change"}]))
    assert aggregate.validate() is WorkOrderState.VALID
    finalized = aggregate.finalize()
    assert finalized.lines[0].quantity == 1
    assert finalized.lines[0].unit_price == 0
    assert finalized.totals.rounded().total == Decimal("0.00")


def test_summary_description_joins_trims_and_truncates():
    lines = [line(" Oil change "), line(""), line("Brake pads")]
    data = order(vehicle_id=1, services=lines).services
    assert summarize_description(data) == "Oil change | Brake pads"

    long_lines = order(vehicle_id=1, services=[line("x" * 200), line("y" * 200)]).services
    assert len(summarize_description(long_lines)) == 255

    assert summarize_description([]) == "Service"


def test_finalize_replaces_blank_line_descriptions():
    aggregate = WorkOrderAggregate(order(vehicle_id=1, services=[line("Tyres", 4, "80"), line("", 1, "5")]))
    aggregate.validate()
    finalized = aggregate.finalize()
    assert [l.description for l in finalized.lines] == ["Tyres", "Service"]
    row = finalized.as_row()
    assert row["subtotal_cents"] == 32500
    assert row["vat_cents"] == 7800
    assert row["total_cents"] == 40300
    assert row["services"][0] == {"description": "Tyres", "quantity": 4, "unit_price": "80"}


async def test_forbidden_for_roles_without_edit_services(mechanic, secretary):
    for perms in (mechanic, secretary):
        aggregate = WorkOrderAggregate(order(vehicle_id=1, services=[line("Oil change")]))
        with pytest.raises(PermissionDeniedError):
            await aggregate.save(NoStoreSession(), perms)


async def test_oil_change_persists_with_zero_totals(db, admin):
    customer = await add_customer(db, "Anna Smith", vehicles=[("Toyota", "Corolla", 2018, "ABC-123")])
    vehicle_id = customer.vehicles[0].id

    aggregate = WorkOrderAggregate(order(vehicle_id=vehicle_id, services=[{"description": "Oil change"}]))
    record = await aggregate.save(db, admin, mechanic_id="user-1")

    assert aggregate.state is WorkOrderState.PERSISTED
    assert record.id is not None
    assert record.description == "Oil change"
    assert (record.subtotal, record.vat, record.total) == (Decimal("0.00"),) * 3
    assert record.mechanic_id == "user-1"


async def test_update_recomputes_totals_from_new_lines(db, admin):
    customer = await add_customer(db, "Anna Smith", vehicles=[("Toyota", "Corolla", 2018, "ABC-123")])
    vehicle_id = customer.vehicles[0].id

    created = await work_orders.save_work_order(
        db, admin, order(vehicle_id=vehicle_id, services=[line("Oil", 2, "50"), line("Filter", 1, "30")])
    )
    assert created.total == Decimal("161.20")

    updated = await work_orders.save_work_order(
        db, admin, order(vehicle_id=vehicle_id, services=[line("Oil", 1, "50")]), record_id=created.id
    )
    assert updated.id == created.id
    assert (updated.subtotal, updated.vat, updated.total) == (
        Decimal("50.00"), Decimal("12.00"), Decimal("62.00"),
    )
    assert updated.description == "Oil"
    assert await db.scalar(select(func.count(ServiceRecord.id))) == 1


async def test_unknown_vehicle_or_record(db, admin):
    with pytest.raises(RecordNotFoundError):
        await work_orders.save_work_order(db, admin, order(vehicle_id=999, services=[line("Oil")]))

    customer = await add_customer(db, "Anna Smith", vehicles=[("Toyota", "Corolla", 2018, None)])
    with pytest.raises(RecordNotFoundError):
        await work_orders.save_work_order(
            db, admin, order(vehicle_id=customer.vehicles[0].id, services=[line("Oil")]), record_id=999
        )


async def test_store_failure_keeps_valid_state_and_allows_retry(db, admin, monkeypatch):
    customer = await add_customer(db, "Anna Smith", vehicles=[("Toyota", "Corolla", 2018, "ABC-123")])
    aggregate = WorkOrderAggregate(order(vehicle_id=customer.vehicles[0].id, services=[line("Oil", 1, "10")]))

    real_commit = db.commit

    async def failing_commit():
        raise OperationalError("INSERT INTO service_records", {}, Exception("disk I/O error"))

    monkeypatch.setattr(db, "commit", failing_commit)
    with pytest.raises(StoreError) as exc:
        await aggregate.save(db, admin)
    assert "disk I/O error" in exc.value.message
    assert exc.value.retryable
    assert aggregate.state is WorkOrderState.VALID

    monkeypatch.setattr(db, "commit", real_commit)
    record = await aggregate.save(db, admin)
    assert aggregate.state is WorkOrderState.PERSISTED
    assert record.total == Decimal("12.40")


async def test_commit_timeout_rolls_back_so_retry_saves_one_record(db, admin, monkeypatch):
    monkeypatch.setattr(get_settings(), "query_timeout", 0.3)
    customer = await add_customer(db, "Anna Smith", vehicles=[("Toyota", "Corolla", 2018, "ABC-123")])
    aggregate = WorkOrderAggregate(order(vehicle_id=customer.vehicles[0].id, services=[line("Oil", 1, "10")]))

    real_commit = db.commit

    async def hanging_commit():
        await asyncio.sleep(5)

    monkeypatch.setattr(db, "commit", hanging_commit)
    with pytest.raises(QueryTimeoutError):
        await aggregate.save(db, admin)
    assert aggregate.state is WorkOrderState.VALID
    assert aggregate.record_id is None

    monkeypatch.setattr(db, "commit", real_commit)
    await aggregate.save(db, admin)
    assert aggregate.state is WorkOrderState.PERSISTED
    assert await db.scalar(select(func.count(ServiceRecord.id))) == 1


async def test_out_of_range_amounts_are_validation_errors(db, admin):
    customer = await add_customer(db, "Anna Smith", vehicles=[("Toyota", "Corolla", 2018, "ABC-123")])
    vehicle_id = customer.vehicles[0].id

    with pytest.raises(ValidationError):
        order(vehicle_id=vehicle_id, services=[line("Engine", 10, "1e999999")])
    with pytest.raises(ValidationError):
        order(vehicle_id=vehicle_id, services=[line("Engine", "1e999999999", "10")])
    with pytest.raises(ValidationError):
        order(vehicle_id=vehicle_id, services=[line("Oil")] * 201)

    aggregate = WorkOrderAggregate(order(vehicle_id=vehicle_id, services=[line("Oil", 1, "10")]),
                                   vat_rate=Decimal("1e999999"))
    with pytest.raises(WorkOrderValidationError):
        await aggregate.save(db, admin)
    assert aggregate.state is WorkOrderState.INVALID
    assert await db.scalar(select(func.count(ServiceRecord.id))) == 0


async def test_delete_and_export(db, admin, mechanic):
    customer = await add_customer(db, "Anna Smith", vehicles=[("Toyota", "Corolla", 2018, "ABC-123")])
    created = await work_orders.save_work_order(
        db, admin, order(vehicle_id=customer.vehicles[0].id, services=[line("Oil", 1, "10")])
    )

    bundle = await work_orders.get_export_bundle(db, admin, created.id)
    assert bundle.customer.name == "Anna Smith"
    assert bundle.vehicle.license_plate == "ABC-123"
    assert bundle.work_order.total == Decimal("12.40")

    hidden = await work_orders.get_service_record(db, mechanic, created.id)
    assert hidden.total is None and hidden.subtotal is None and hidden.vat is None

    with pytest.raises(PermissionDeniedError):
        await work_orders.delete_service_record(db, mechanic, created.id)

    await work_orders.delete_service_record(db, admin, created.id)
    with pytest.raises(RecordNotFoundError):
        await work_orders.get_service_record(db, admin, created.id)

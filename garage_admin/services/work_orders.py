"""
Work order aggregate.

A work order moves DRAFT -> VALID -> PERSISTED, or DRAFT -> INVALID until it
is corrected. ``finalize`` is the only producer of a persistable payload: it
derives the summary description and runs the money engine over the current
lines, so the stored subtotal/VAT/total always belong to the stored lines.
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from garage_admin.config import get_settings
from garage_admin.exceptions import (
    GarageAdminError,
    RecordNotFoundError,
    WorkOrderValidationError,
)
from garage_admin.models.service import ServiceRecord
from garage_admin.models.vehicle import Vehicle
from garage_admin.permissions import Permissions
from garage_admin.schemas.customer import CustomerSummary
from garage_admin.schemas.service import ExportBundle, ServiceLine, WorkOrder as WorkOrderSchema, WorkOrderCreate
from garage_admin.schemas.vehicle import Vehicle as VehicleSchema
from garage_admin.services.money import MoneyTotals, compute_totals
from garage_admin.services.store import call_store, commit_store

logger = logging.getLogger(__name__)

DESCRIPTION_SEPARATOR = " | "
DESCRIPTION_MAX_LENGTH = 255
DEFAULT_DESCRIPTION = "Service"


class WorkOrderState(str, enum.Enum):
    DRAFT = "draft"
    INVALID = "invalid"
    VALID = "valid"
    PERSISTED = "persisted"


def summarize_description(lines: List[ServiceLine]) -> str:
    """Non-blank line descriptions joined by `` | ``, cut to 255 characters."""
    parts = [line.description.strip() for line in lines if line.description and line.description.strip()]
    summary = DESCRIPTION_SEPARATOR.join(parts)[:DESCRIPTION_MAX_LENGTH]
    return summary or DEFAULT_DESCRIPTION


@dataclass(frozen=True)
class FinalizedWorkOrder:
    """Everything that gets written for one work order."""
    vehicle_id: int
    date: object
    mileage: int
    notes: Optional[str]
    description: str
    lines: List[ServiceLine]
    totals: MoneyTotals

    def as_row(self) -> dict:
        return {
            "vehicle_id": self.vehicle_id,
            "date": self.date,
            "mileage": self.mileage,
            "notes": self.notes,
            "description": self.description,
            "services": [line.model_dump(mode="json") for line in self.lines],
            **self.totals.as_cents(),
        }


class WorkOrderAggregate:
    """Validation and persistence of one work order form."""

    def __init__(self, data: WorkOrderCreate, record_id: Optional[int] = None,
                 vat_rate: Optional[Decimal] = None):
        self.data = data
        self.record_id = record_id
        self.vat_rate = vat_rate if vat_rate is not None else get_settings().vat_rate
        self.state = WorkOrderState.DRAFT
        self.errors: List[str] = []
        self.record: Optional[ServiceRecord] = None

    def validate(self) -> WorkOrderState:
        """Check vehicle and lines. Raises WorkOrderValidationError when invalid."""
        if self.state in (WorkOrderState.VALID, WorkOrderState.PERSISTED):
            return self.state

        errors = []
        if self.data.vehicle_id is None or not self.data.services:
            errors.append("Please select a vehicle and add at least one service line.")
        elif not any(line.description and line.description.strip() for line in self.data.services):
            errors.append("Please add a description in at least one line.")

        self.errors = errors
        if errors:
            self.state = WorkOrderState.INVALID
            raise WorkOrderValidationError(errors[0])

        self.state = WorkOrderState.VALID
        return self.state

    def update(self, data: WorkOrderCreate) -> None:
        """Replace the form data; validation starts over."""
        self.data = data
        self.state = WorkOrderState.DRAFT
        self.errors = []

    def finalize(self) -> FinalizedWorkOrder:
        if self.state is not WorkOrderState.VALID and self.state is not WorkOrderState.PERSISTED:
            self.validate()

        lines = [
            ServiceLine(
                description=line.description.strip() or DEFAULT_DESCRIPTION,
                quantity=line.quantity,
                unit_price=line.unit_price,
            )
            for line in self.data.services
        ]
        try:
            totals = compute_totals(lines, self.vat_rate)
        except ArithmeticError:
            self.state = WorkOrderState.INVALID
            raise WorkOrderValidationError("Line amounts are out of range.") from None
        return FinalizedWorkOrder(
            vehicle_id=self.data.vehicle_id,
            date=self.data.date,
            mileage=self.data.mileage,
            notes=self.data.notes,
            description=summarize_description(self.data.services),
            lines=lines,
            totals=totals,
        )

    async def save(self, db: AsyncSession, permissions: Permissions,
                   mechanic_id: Optional[str] = None) -> ServiceRecord:
        """Create or update the record. On failure the aggregate stays VALID."""
        permissions.require("can_edit_services")
        self.validate()
        finalized = self.finalize()
        settings = get_settings()

        vehicle = await call_store(
            db.get(Vehicle, finalized.vehicle_id),
            timeout=settings.query_timeout,
            operation="vehicle lookup",
        )
        if vehicle is None:
            raise RecordNotFoundError("Vehicle not found")

        if self.record_id is not None:
            record = await call_store(
                db.get(ServiceRecord, self.record_id),
                timeout=settings.query_timeout,
                operation="service record lookup",
            )
            if record is None:
                raise RecordNotFoundError("Service record not found")
        else:
            record = ServiceRecord(mechanic_id=mechanic_id)
            db.add(record)

        for field, value in finalized.as_row().items():
            setattr(record, field, value)

        try:
            await commit_store(db, timeout=settings.query_timeout, operation="saving service record")
        except GarageAdminError:
            self.state = WorkOrderState.VALID
            raise

        self.record_id = record.id
        self.state = WorkOrderState.PERSISTED
        logger.info("Saved service record %s (total %s)", record.id, finalized.totals.rounded().total)
        self.record = await get_service_record_row(db, record.id)
        return self.record


def present_work_order(record: ServiceRecord, permissions: Permissions) -> WorkOrderSchema:
    """Response schema with money fields dropped unless financials are visible."""
    out = WorkOrderSchema.model_validate(record)
    if not permissions.can_view_financials:
        out = out.model_copy(update={"subtotal": None, "vat": None, "total": None})
    return out


async def get_service_record_row(db: AsyncSession, record_id: int) -> ServiceRecord:
    settings = get_settings()
    # populate_existing so an export or a reread after save never sees stale state
    stmt = (
        select(ServiceRecord)
        .where(ServiceRecord.id == record_id)
        .options(selectinload(ServiceRecord.vehicle).selectinload(Vehicle.customer))
        .execution_options(populate_existing=True)
    )
    result = await call_store(db.execute(stmt), timeout=settings.query_timeout,
                              operation="service record lookup")
    record = result.scalar_one_or_none()
    if record is None:
        raise RecordNotFoundError("Service record not found")
    return record


async def get_service_record(db: AsyncSession, permissions: Permissions, record_id: int) -> WorkOrderSchema:
    permissions.require("can_view_services")
    return present_work_order(await get_service_record_row(db, record_id), permissions)


async def save_work_order(
    db: AsyncSession,
    permissions: Permissions,
    data: WorkOrderCreate,
    record_id: Optional[int] = None,
    mechanic_id: Optional[str] = None,
) -> WorkOrderSchema:
    aggregate = WorkOrderAggregate(data, record_id=record_id)
    record = await aggregate.save(db, permissions, mechanic_id=mechanic_id)
    return present_work_order(record, permissions)


async def delete_service_record(db: AsyncSession, permissions: Permissions, record_id: int) -> None:
    permissions.require("can_edit_services")
    settings = get_settings()
    record = await call_store(db.get(ServiceRecord, record_id), timeout=settings.query_timeout,
                              operation="service record lookup")
    if record is None:
        raise RecordNotFoundError("Service record not found")

    await db.delete(record)
    await commit_store(db, timeout=settings.query_timeout, operation="deleting service record")
    logger.info("Deleted service record %s", record_id)


async def get_export_bundle(db: AsyncSession, permissions: Permissions, record_id: int) -> ExportBundle:
    """Re-fetch the stored work order with its vehicle and customer for the PDF exporter."""
    permissions.require("can_view_services")
    record = await get_service_record_row(db, record_id)
    vehicle = record.vehicle
    return ExportBundle(
        customer=CustomerSummary.model_validate(vehicle.customer),
        vehicle=VehicleSchema.model_validate(vehicle),
        work_order=present_work_order(record, permissions),
    )

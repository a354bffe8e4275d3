"""
Pydantic schemas for work orders (service records).
"""
from pydantic import BaseModel, ConfigDict, Field, field_validator
from datetime import date as date_type, datetime
from decimal import Decimal
from typing import List, Optional

from garage_admin.schemas.customer import CustomerSummary
from garage_admin.schemas.vehicle import Vehicle
from garage_admin.services.money import coerce_quantity, coerce_unit_price

MAX_LINES = 200
MAX_MILEAGE = 10_000_000


class ServiceLine(BaseModel):
    """One billable line. Missing or invalid quantity/price fall back to 1 and 0."""
    description: str = ""
    quantity: int = 1
    unit_price: Decimal = Decimal("0")

    @field_validator("description", mode="before")
    @classmethod
    def _description(cls, value):
        return "" if value is None else str(value)

    @field_validator("quantity", mode="before")
    @classmethod
    def _quantity(cls, value):
        return coerce_quantity(value)

    @field_validator("unit_price", mode="before")
    @classmethod
    def _unit_price(cls, value):
        return coerce_unit_price(value)


class WorkOrderCreate(BaseModel):
    """Schema for creating or replacing a work order.

    Vehicle and line checks are left to the work order aggregate so they
    are reported the same way for every caller.
    """
    vehicle_id: Optional[int] = None
    date: date_type = Field(default_factory=date_type.today)
    mileage: int = Field(default=0, ge=0, le=MAX_MILEAGE)
    notes: Optional[str] = Field(default=None, max_length=500)
    services: List[ServiceLine] = Field(default_factory=list, max_length=MAX_LINES)


class VehicleWithCustomer(Vehicle):
    customer: Optional[CustomerSummary] = None


class WorkOrder(BaseModel):
    """Schema for work order responses.

    Money fields are None when the caller cannot view financials.
    """
    id: int
    vehicle_id: int
    mechanic_id: Optional[str] = None
    date: date_type
    mileage: int
    notes: Optional[str] = None
    description: str
    services: List[ServiceLine] = []
    subtotal: Optional[Decimal] = None
    vat: Optional[Decimal] = None
    total: Optional[Decimal] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    vehicle: Optional[VehicleWithCustomer] = None

    model_config = ConfigDict(from_attributes=True)


class ExportBundle(BaseModel):
    """Freshly fetched customer, vehicle and work order for the PDF exporter."""
    customer: CustomerSummary
    vehicle: Vehicle
    work_order: WorkOrder

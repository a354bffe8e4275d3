"""
Pydantic schemas for Vehicle.
"""
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Optional


class VehicleBase(BaseModel):
    """Base vehicle schema with common fields."""
    make: str
    model: str
    year: int
    license_plate: Optional[str] = None
    vin: Optional[str] = Field(default=None, max_length=17)


class VehicleCreate(VehicleBase):
    """Schema for creating a vehicle."""
    customer_id: int


class VehicleUpdate(BaseModel):
    """Schema for updating a vehicle. The owning customer cannot change."""
    make: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = None
    license_plate: Optional[str] = None
    vin: Optional[str] = Field(default=None, max_length=17)


class Vehicle(VehicleBase):
    """Schema for vehicle responses."""
    id: int
    customer_id: int
    label: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

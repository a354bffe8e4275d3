"""
Pydantic schemas for Customer.
"""
from pydantic import BaseModel, EmailStr, ConfigDict
from datetime import datetime
from typing import List, Optional

from garage_admin.schemas.vehicle import Vehicle


class CustomerBase(BaseModel):
    """Base customer schema with common fields."""
    name: str
    email: EmailStr
    phone: str
    address: Optional[str] = None


class CustomerCreate(CustomerBase):
    """Schema for creating a customer."""
    pass


class CustomerUpdate(BaseModel):
    """Schema for updating a customer."""
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[str] = None


class CustomerSummary(BaseModel):
    """Customer as embedded in vehicle and work order responses."""
    id: int
    name: str
    email: str
    phone: str
    address: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class Customer(CustomerBase):
    """Schema for customer responses."""
    id: int
    user_id: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    vehicles: List[Vehicle] = []

    model_config = ConfigDict(from_attributes=True)

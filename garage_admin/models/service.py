"""
Service record (work order) model for database.
"""
from decimal import Decimal

from sqlalchemy import BigInteger, Column, Integer, String, Date, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from garage_admin.database import Base

CENTS = Decimal("0.01")


def _from_cents(value):
    if value is None:
        return None
    return (Decimal(value) * CENTS).quantize(CENTS)


class ServiceRecord(Base):
    """Work order database model.

    Money is stored in integer cents so SQL sums are exact on every backend.
    The ``subtotal``/``vat``/``total`` properties expose it as ``Decimal``.
    """

    __tablename__ = "service_records"

    id = Column(Integer, primary_key=True, index=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id", ondelete="CASCADE"), nullable=False)
    mechanic_id = Column(String, nullable=True)
    date = Column(Date, nullable=False, index=True)
    mileage = Column(Integer, nullable=False, default=0)
    notes = Column(String(500), nullable=True)
    description = Column(String(255), nullable=False, default="Service")
    services = Column(JSON, nullable=False, default=list)
    subtotal_cents = Column(BigInteger, nullable=False, default=0)
    vat_cents = Column(BigInteger, nullable=False, default=0)
    total_cents = Column(BigInteger, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    vehicle = relationship("Vehicle", back_populates="service_records")

    @property
    def subtotal(self):
        return _from_cents(self.subtotal_cents)

    @property
    def vat(self):
        return _from_cents(self.vat_cents)

    @property
    def total(self):
        return _from_cents(self.total_cents)

"""
Vehicle model for database.
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from garage_admin.database import Base


class Vehicle(Base):
    """Vehicle database model."""

    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="CASCADE"), nullable=False)
    make = Column(String, nullable=False)
    model = Column(String, nullable=False)
    year = Column(Integer, nullable=False)
    license_plate = Column(String, unique=True, nullable=True, index=True)
    vin = Column(String(17), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    customer = relationship("Customer", back_populates="vehicles")
    service_records = relationship(
        "ServiceRecord", back_populates="vehicle", cascade="all, delete-orphan"
    )

    @property
    def label(self) -> str:
        """Make, model and year as shown in lists and searched as the vehicle field."""
        return f"{self.make} {self.model} {self.year}"

"""
Pydantic schemas for paginated list results and revenue aggregates.
"""
from pydantic import BaseModel
from decimal import Decimal
from typing import Generic, List, Optional, TypeVar

from garage_admin.schemas.service import WorkOrder

T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    """One window of a full-corpus query."""
    items: List[T]
    total_count: int
    page: int
    page_size: int
    page_count: int


class RevenueSummary(BaseModel):
    """Revenue over every record matching a list query, ignoring the page window."""
    total_revenue: Decimal
    average_revenue: Decimal
    record_count: int


class MonthlyRevenue(BaseModel):
    month: str
    total: Decimal


class RevenueReport(BaseModel):
    weekly: Decimal
    monthly: Decimal
    yearly: Decimal
    by_month: List[MonthlyRevenue]


class DashboardStats(BaseModel):
    customers: int
    vehicles: int
    monthly_services: int
    total_revenue: Optional[Decimal] = None
    recent_services: List[WorkOrder] = []

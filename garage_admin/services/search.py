"""
Full-corpus search and pagination for the Services and Customers lists.

A list request is a ``SearchQuery`` (term, field, filter, page, page_size).
The predicate is built once per view and applied in SQL to the whole table:
the same predicate feeds the ``COUNT`` behind ``total_count``, the ordered
page window, and, for work orders, the unwindowed revenue aggregate. Pages
past the end come back empty with the real ``total_count``.
"""
from __future__ import annotations

import enum
import logging
import math
from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import String, cast, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from garage_admin.config import get_settings
from garage_admin.exceptions import InvalidQueryError
from garage_admin.models.customer import Customer
from garage_admin.models.service import ServiceRecord
from garage_admin.models.vehicle import Vehicle
from garage_admin.permissions import Permissions
from garage_admin.schemas.customer import Customer as CustomerSchema
from garage_admin.schemas.search import Page, RevenueSummary
from garage_admin.services.money import CENTS, to_cents
from garage_admin.services.store import call_store
from garage_admin.services.work_orders import present_work_order

logger = logging.getLogger(__name__)

PAGE_SIZES = (25, 50, 100, 250, 500)


class ServiceSearchField(str, enum.Enum):
    ALL = "all"
    CUSTOMER = "customer"
    VEHICLE = "vehicle"
    LICENSE_PLATE = "license_plate"
    DESCRIPTION = "description"


class ServiceFilter(str, enum.Enum):
    ALL = "all"
    TODAY = "today"
    WEEK = "week"
    MONTH = "month"
    HIGH_VALUE = "high-value"


class CustomerSearchField(str, enum.Enum):
    ALL = "all"
    CUSTOMER = "customer"
    VEHICLE = "vehicle"
    LICENSE_PLATE = "license_plate"


class CustomerFilter(str, enum.Enum):
    ALL = "all"
    RECENT = "recent"
    MULTI_VEHICLE = "multi-vehicle"


@dataclass(frozen=True)
class SearchQuery:
    """Parameters of one list request."""
    term: Optional[str] = None
    field: str = "all"
    filter: str = "all"
    page: int = 1
    page_size: int = 50

    @property
    def search_term(self) -> Optional[str]:
        if self.term is None:
            return None
        term = self.term.strip()
        return term or None

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    def check_window(self) -> None:
        if self.page < 1:
            raise InvalidQueryError(f"Invalid page {self.page}: pages start at 1")
        if self.page_size not in PAGE_SIZES:
            raise InvalidQueryError(
                f"Invalid page size {self.page_size}: expected one of {', '.join(map(str, PAGE_SIZES))}"
            )

    def parse(self, field_enum, filter_enum):
        """Validate the window and return (field, filter) as the view's enums."""
        self.check_window()
        try:
            field = field_enum(self.field)
        except ValueError:
            raise InvalidQueryError(f"Unsupported search field: {self.field}") from None
        try:
            filter_ = filter_enum(self.filter)
        except ValueError:
            raise InvalidQueryError(f"Unsupported filter: {self.filter}") from None
        return field, filter_

    def changed(self, **changes) -> "SearchQuery":
        """Copy with changes; a new term, field or filter starts again at page 1."""
        if any(k in changes for k in ("term", "field", "filter")) and "page" not in changes:
            changes["page"] = 1
        return replace(self, **changes)


def _page_count(total: int, page_size: int) -> int:
    return math.ceil(total / page_size) if total else 0


def vehicle_label():
    """``make model year`` as one searchable string."""
    return Vehicle.make + " " + Vehicle.model + " " + cast(Vehicle.year, String)


def _contains(column, term: str):
    return column.icontains(term, autoescape=True)


# ---------------------------------------------------------------------------
# Work orders
# ---------------------------------------------------------------------------

def service_conditions(query: SearchQuery, today: date, high_value_threshold: Decimal) -> list:
    """WHERE clauses for a work order query. Search and filter are ANDed."""
    field, filter_ = query.parse(ServiceSearchField, ServiceFilter)
    conditions = []

    term = query.search_term
    if term:
        by_field = {
            ServiceSearchField.CUSTOMER: [_contains(Customer.name, term)],
            ServiceSearchField.VEHICLE: [_contains(vehicle_label(), term)],
            ServiceSearchField.LICENSE_PLATE: [_contains(Vehicle.license_plate, term)],
            ServiceSearchField.DESCRIPTION: [
                _contains(ServiceRecord.description, term),
                _contains(ServiceRecord.notes, term),
            ],
        }
        if field is ServiceSearchField.ALL:
            clauses = [c for group in by_field.values() for c in group]
        else:
            clauses = by_field[field]
        conditions.append(or_(*clauses))

    if filter_ is ServiceFilter.TODAY:
        conditions.append(ServiceRecord.date == today)
    elif filter_ is ServiceFilter.WEEK:
        start = today - timedelta(days=today.weekday())
        conditions.append(ServiceRecord.date >= start)
        conditions.append(ServiceRecord.date < start + timedelta(days=7))
    elif filter_ is ServiceFilter.MONTH:
        start = today.replace(day=1)
        end = (start + timedelta(days=32)).replace(day=1)
        conditions.append(ServiceRecord.date >= start)
        conditions.append(ServiceRecord.date < end)
    elif filter_ is ServiceFilter.HIGH_VALUE:
        conditions.append(ServiceRecord.total_cents >= to_cents(high_value_threshold))

    return conditions


def _service_scope(statement, conditions):
    return (
        statement
        .join(ServiceRecord.vehicle)
        .join(Vehicle.customer)
        .where(*conditions)
    )


async def search_service_records(
    db: AsyncSession,
    permissions: Permissions,
    query: SearchQuery,
    today: Optional[date] = None,
) -> Page:
    """One page of work orders, newest first, with the full match count."""
    permissions.require("can_view_services")
    settings = get_settings()
    conditions = service_conditions(query, today or date.today(), settings.high_value_threshold)

    count_stmt = _service_scope(select(func.count(ServiceRecord.id)), conditions)
    items_stmt = (
        _service_scope(select(ServiceRecord), conditions)
        .options(selectinload(ServiceRecord.vehicle).selectinload(Vehicle.customer))
        .order_by(ServiceRecord.date.desc(), ServiceRecord.id.desc())
        .offset(query.offset)
        .limit(query.page_size)
    )

    async def run():
        total = await db.scalar(count_stmt)
        rows = (await db.execute(items_stmt)).scalars().all()
        return total or 0, rows

    total, rows = await call_store(run(), timeout=settings.query_timeout, operation="service search")
    logger.debug("Service search %r matched %d, returned %d", query, total, len(rows))

    return Page(
        items=[present_work_order(r, permissions) for r in rows],
        total_count=total,
        page=query.page,
        page_size=query.page_size,
        page_count=_page_count(total, query.page_size),
    )


async def revenue_summary(
    db: AsyncSession,
    permissions: Permissions,
    query: SearchQuery,
    today: Optional[date] = None,
) -> RevenueSummary:
    """Revenue over every work order the list query matches, ignoring the page window."""
    permissions.require("can_view_financials")
    settings = get_settings()
    conditions = service_conditions(query, today or date.today(), settings.high_value_threshold)

    stmt = _service_scope(
        select(func.coalesce(func.sum(ServiceRecord.total_cents), 0), func.count(ServiceRecord.id)),
        conditions,
    )

    async def run():
        return (await db.execute(stmt)).one()

    cents, count = await call_store(run(), timeout=settings.query_timeout, operation="revenue aggregate")
    total = (Decimal(int(cents)) * CENTS).quantize(CENTS)
    average = (total / count).quantize(CENTS) if count else Decimal("0.00")
    return RevenueSummary(total_revenue=total, average_revenue=average, record_count=count)


# ---------------------------------------------------------------------------
# Customers
# ---------------------------------------------------------------------------

def customer_conditions(query: SearchQuery, now: datetime, recent_days: int) -> list:
    field, filter_ = query.parse(CustomerSearchField, CustomerFilter)
    conditions = []

    term = query.search_term
    if term:
        by_field = {
            CustomerSearchField.CUSTOMER: [
                _contains(Customer.name, term),
                _contains(Customer.email, term),
                _contains(Customer.phone, term),
            ],
            CustomerSearchField.VEHICLE: [Customer.vehicles.any(_contains(vehicle_label(), term))],
            CustomerSearchField.LICENSE_PLATE: [
                Customer.vehicles.any(_contains(Vehicle.license_plate, term))
            ],
        }
        if field is CustomerSearchField.ALL:
            clauses = [c for group in by_field.values() for c in group]
        else:
            clauses = by_field[field]
        conditions.append(or_(*clauses))

    if filter_ is CustomerFilter.RECENT:
        conditions.append(Customer.created_at >= now - timedelta(days=recent_days))
    elif filter_ is CustomerFilter.MULTI_VEHICLE:
        vehicle_count = (
            select(func.count(Vehicle.id))
            .where(Vehicle.customer_id == Customer.id)
            .correlate(Customer)
            .scalar_subquery()
        )
        conditions.append(vehicle_count > 1)

    return conditions


async def search_customers(
    db: AsyncSession,
    permissions: Permissions,
    query: SearchQuery,
    now: Optional[datetime] = None,
) -> Page:
    """One page of customers with their vehicles, newest first."""
    permissions.require("can_view_customers")
    settings = get_settings()
    conditions = customer_conditions(
        query, now or datetime.now(timezone.utc), settings.recent_customer_days
    )

    count_stmt = select(func.count(Customer.id)).where(*conditions)
    items_stmt = (
        select(Customer)
        .where(*conditions)
        .options(selectinload(Customer.vehicles))
        .order_by(Customer.created_at.desc(), Customer.id.desc())
        .offset(query.offset)
        .limit(query.page_size)
    )

    async def run():
        total = await db.scalar(count_stmt)
        rows = (await db.execute(items_stmt)).scalars().all()
        return total or 0, rows

    total, rows = await call_store(run(), timeout=settings.query_timeout, operation="customer search")

    return Page(
        items=[CustomerSchema.model_validate(c) for c in rows],
        total_count=total,
        page=query.page,
        page_size=query.page_size,
        page_count=_page_count(total, query.page_size),
    )

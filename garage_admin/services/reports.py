"""
Dashboard counters and revenue reports.
"""
import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import Optional

from sqlalchemy import extract, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from garage_admin.config import get_settings
from garage_admin.models.customer import Customer
from garage_admin.models.service import ServiceRecord
from garage_admin.models.vehicle import Vehicle
from garage_admin.permissions import Permissions
from garage_admin.schemas.search import DashboardStats, MonthlyRevenue, RevenueReport
from garage_admin.services.money import CENTS
from garage_admin.services.store import call_store
from garage_admin.services.work_orders import present_work_order

logger = logging.getLogger(__name__)

MONTH_NAMES = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
               "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

RECENT_SERVICES = 5


def _money(cents) -> Decimal:
    return (Decimal(int(cents or 0)) * CENTS).quantize(CENTS)


def _month_bounds(today: date):
    start = today.replace(day=1)
    end = (start + timedelta(days=32)).replace(day=1)
    return start, end


async def dashboard_stats(db: AsyncSession, permissions: Permissions,
                          today: Optional[date] = None) -> DashboardStats:
    permissions.require("can_view_dashboard")
    settings = get_settings()
    today = today or date.today()
    month_start, month_end = _month_bounds(today)

    async def run():
        customers = await db.scalar(select(func.count(Customer.id)))
        vehicles = await db.scalar(select(func.count(Vehicle.id)))
        monthly = await db.scalar(
            select(func.count(ServiceRecord.id))
            .where(ServiceRecord.date >= month_start, ServiceRecord.date < month_end)
        )
        recent = (await db.execute(
            select(ServiceRecord)
            .options(selectinload(ServiceRecord.vehicle).selectinload(Vehicle.customer))
            .order_by(ServiceRecord.date.desc(), ServiceRecord.id.desc())
            .limit(RECENT_SERVICES)
        )).scalars().all()
        return customers or 0, vehicles or 0, monthly or 0, recent

    customers, vehicles, monthly, recent = await call_store(
        run(), timeout=settings.query_timeout, operation="dashboard load"
    )

    revenue = None
    if permissions.can_view_financials:
        revenue = sum((r.total for r in recent), Decimal("0.00"))

    return DashboardStats(
        customers=customers,
        vehicles=vehicles,
        monthly_services=monthly,
        total_revenue=revenue,
        recent_services=[present_work_order(r, permissions) for r in recent],
    )


async def revenue_report(db: AsyncSession, permissions: Permissions,
                         today: Optional[date] = None) -> RevenueReport:
    """Week (from Sunday), month and year to date, plus this year's months."""
    permissions.require("can_view_financials")
    settings = get_settings()
    today = today or date.today()

    # Weeks start on Sunday on the revenue page
    week_start = today - timedelta(days=(today.weekday() + 1) % 7)
    month_start = today.replace(day=1)
    year_start = today.replace(month=1, day=1)
    next_year = year_start.replace(year=today.year + 1)

    def since(start):
        return select(func.coalesce(func.sum(ServiceRecord.total_cents), 0)).where(ServiceRecord.date >= start)

    month_col = extract("month", ServiceRecord.date)
    by_month_stmt = (
        select(month_col, func.coalesce(func.sum(ServiceRecord.total_cents), 0))
        .where(ServiceRecord.date >= year_start, ServiceRecord.date < next_year)
        .group_by(month_col)
    )

    async def run():
        weekly = await db.scalar(since(week_start))
        monthly = await db.scalar(since(month_start))
        yearly = await db.scalar(since(year_start))
        rows = (await db.execute(by_month_stmt)).all()
        return weekly, monthly, yearly, rows

    weekly, monthly, yearly, rows = await call_store(
        run(), timeout=settings.query_timeout, operation="revenue report"
    )

    buckets = {int(month): cents for month, cents in rows}
    return RevenueReport(
        weekly=_money(weekly),
        monthly=_money(monthly),
        yearly=_money(yearly),
        by_month=[
            MonthlyRevenue(month=name, total=_money(buckets.get(index + 1, 0)))
            for index, name in enumerate(MONTH_NAMES)
        ],
    )

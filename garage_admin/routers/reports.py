"""
Dashboard and revenue report routes.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from garage_admin.auth import get_permissions
from garage_admin.database import get_db
from garage_admin.permissions import Permissions
from garage_admin.schemas.search import DashboardStats, RevenueReport
from garage_admin.services import reports

router = APIRouter(prefix="/reports", tags=["reports"])


@router.get("/dashboard", response_model=DashboardStats)
async def get_dashboard(
    db: AsyncSession = Depends(get_db),
    permissions: Permissions = Depends(get_permissions),
):
    """
    Counters and the most recent service records.
    """
    return await reports.dashboard_stats(db, permissions)


@router.get("/revenue", response_model=RevenueReport)
async def get_revenue(
    db: AsyncSession = Depends(get_db),
    permissions: Permissions = Depends(get_permissions),
):
    """
    Weekly, monthly and yearly revenue with this year's monthly breakdown.
    """
    return await reports.revenue_report(db, permissions)

"""
Service record (work order) routes.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from garage_admin.auth import get_current_profile, get_permissions
from garage_admin.config import get_settings
from garage_admin.database import get_db
from garage_admin.permissions import Permissions
from garage_admin.schemas.search import Page, RevenueSummary
from garage_admin.schemas.service import ExportBundle, WorkOrder, WorkOrderCreate
from garage_admin.services import work_orders
from garage_admin.services.profiles import LoadedProfile
from garage_admin.services.search import SearchQuery, revenue_summary, search_service_records

router = APIRouter(prefix="/services", tags=["services"])


def list_query(
    search: Optional[str] = None,
    field: str = "all",
    filter: str = "all",
    page: int = 1,
    page_size: Optional[int] = None,
) -> SearchQuery:
    return SearchQuery(
        term=search, field=field, filter=filter, page=page,
        page_size=page_size or get_settings().default_page_size,
    )


@router.get("/", response_model=Page[WorkOrder])
async def get_services(
    query: SearchQuery = Depends(list_query),
    db: AsyncSession = Depends(get_db),
    permissions: Permissions = Depends(get_permissions),
):
    """
    Search service records across all records, newest first, one page at a time.
    """
    return await search_service_records(db, permissions, query)


@router.get("/revenue", response_model=RevenueSummary)
async def get_services_revenue(
    query: SearchQuery = Depends(list_query),
    db: AsyncSession = Depends(get_db),
    permissions: Permissions = Depends(get_permissions),
):
    """
    Total and average revenue of every record matching the same search and filter.
    """
    return await revenue_summary(db, permissions, query)


@router.get("/{service_id}", response_model=WorkOrder)
async def get_service(
    service_id: int,
    db: AsyncSession = Depends(get_db),
    permissions: Permissions = Depends(get_permissions),
):
    """
    Get a specific service record by ID.
    """
    return await work_orders.get_service_record(db, permissions, service_id)


@router.get("/{service_id}/export", response_model=ExportBundle)
async def export_service(
    service_id: int,
    db: AsyncSession = Depends(get_db),
    permissions: Permissions = Depends(get_permissions),
):
    """
    Freshly stored customer, vehicle and work order for the PDF exporter.
    """
    return await work_orders.get_export_bundle(db, permissions, service_id)


@router.post("/", response_model=WorkOrder, status_code=status.HTTP_201_CREATED)
async def create_service(
    service: WorkOrderCreate,
    db: AsyncSession = Depends(get_db),
    current: LoadedProfile = Depends(get_current_profile),
):
    """
    Create a new service record. Totals are computed from the lines.
    """
    return await work_orders.save_work_order(
        db, current.permissions, service, mechanic_id=current.profile.id
    )


@router.put("/{service_id}", response_model=WorkOrder)
async def update_service(
    service_id: int,
    service_update: WorkOrderCreate,
    db: AsyncSession = Depends(get_db),
    permissions: Permissions = Depends(get_permissions),
):
    """
    Replace a service record's details and lines. Totals are recomputed.
    """
    return await work_orders.save_work_order(db, permissions, service_update, record_id=service_id)


@router.delete("/{service_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_service(
    service_id: int,
    db: AsyncSession = Depends(get_db),
    permissions: Permissions = Depends(get_permissions),
):
    """
    Delete a service record.
    """
    await work_orders.delete_service_record(db, permissions, service_id)
    return None

"""
Customer routes.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from garage_admin.auth import get_current_profile, get_permissions
from garage_admin.config import get_settings
from garage_admin.database import get_db
from garage_admin.permissions import Permissions
from garage_admin.schemas.customer import Customer as CustomerSchema, CustomerCreate, CustomerUpdate
from garage_admin.schemas.search import Page
from garage_admin.services import records
from garage_admin.services.profiles import LoadedProfile
from garage_admin.services.search import SearchQuery, search_customers

router = APIRouter(prefix="/customers", tags=["customers"])


@router.get("/", response_model=Page[CustomerSchema])
async def get_customers(
    search: Optional[str] = None,
    field: str = "all",
    filter: str = "all",
    page: int = 1,
    page_size: Optional[int] = None,
    db: AsyncSession = Depends(get_db),
    permissions: Permissions = Depends(get_permissions),
):
    """
    Search customers across all records, newest first, one page at a time.
    """
    query = SearchQuery(term=search, field=field, filter=filter, page=page,
                        page_size=page_size or get_settings().default_page_size)
    return await search_customers(db, permissions, query)


@router.get("/{customer_id}", response_model=CustomerSchema)
async def get_customer(
    customer_id: int,
    db: AsyncSession = Depends(get_db),
    permissions: Permissions = Depends(get_permissions),
):
    """
    Get a specific customer by ID, with vehicles.
    """
    return await records.get_customer(db, permissions, customer_id)


@router.post("/", response_model=CustomerSchema, status_code=status.HTTP_201_CREATED)
async def create_customer(
    customer: CustomerCreate,
    db: AsyncSession = Depends(get_db),
    current: LoadedProfile = Depends(get_current_profile),
):
    """
    Create a new customer.
    """
    return await records.create_customer(db, current.permissions, customer, user_id=current.profile.id)


@router.put("/{customer_id}", response_model=CustomerSchema)
async def update_customer(
    customer_id: int,
    customer_update: CustomerUpdate,
    db: AsyncSession = Depends(get_db),
    permissions: Permissions = Depends(get_permissions),
):
    """
    Update a customer.
    """
    return await records.update_customer(db, permissions, customer_id, customer_update)


@router.delete("/{customer_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_customer(
    customer_id: int,
    db: AsyncSession = Depends(get_db),
    permissions: Permissions = Depends(get_permissions),
):
    """
    Delete a customer together with its vehicles and their service records.
    """
    await records.delete_customer(db, permissions, customer_id)
    return None

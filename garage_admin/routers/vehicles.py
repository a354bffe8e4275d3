"""
Vehicle routes.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from garage_admin.auth import get_permissions
from garage_admin.database import get_db
from garage_admin.permissions import Permissions
from garage_admin.schemas.vehicle import Vehicle as VehicleSchema, VehicleCreate, VehicleUpdate
from garage_admin.services import records

router = APIRouter(prefix="/vehicles", tags=["vehicles"])


@router.get("/", response_model=List[VehicleSchema])
async def get_vehicles(
    customer_id: Optional[int] = None,
    db: AsyncSession = Depends(get_db),
    permissions: Permissions = Depends(get_permissions),
):
    """
    Get all vehicles ordered by make, optionally for one customer.
    """
    return await records.list_vehicles(db, permissions, customer_id)


@router.get("/{vehicle_id}", response_model=VehicleSchema)
async def get_vehicle(
    vehicle_id: int,
    db: AsyncSession = Depends(get_db),
    permissions: Permissions = Depends(get_permissions),
):
    """
    Get a specific vehicle by ID.
    """
    return await records.get_vehicle(db, permissions, vehicle_id)


@router.post("/", response_model=VehicleSchema, status_code=status.HTTP_201_CREATED)
async def create_vehicle(
    vehicle: VehicleCreate,
    db: AsyncSession = Depends(get_db),
    permissions: Permissions = Depends(get_permissions),
):
    """
    Create a new vehicle for an existing customer.
    """
    return await records.create_vehicle(db, permissions, vehicle)


@router.put("/{vehicle_id}", response_model=VehicleSchema)
async def update_vehicle(
    vehicle_id: int,
    vehicle_update: VehicleUpdate,
    db: AsyncSession = Depends(get_db),
    permissions: Permissions = Depends(get_permissions),
):
    """
    Update a vehicle.
    """
    return await records.update_vehicle(db, permissions, vehicle_id, vehicle_update)


@router.delete("/{vehicle_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_vehicle(
    vehicle_id: int,
    db: AsyncSession = Depends(get_db),
    permissions: Permissions = Depends(get_permissions),
):
    """
    Delete a vehicle and its service records.
    """
    await records.delete_vehicle(db, permissions, vehicle_id)
    return None

from datetime import datetime
from fastapi import APIRouter, Depends, Query, Response, status
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession

from shiftr.api.dependencies import get_permission_checker_dependency
from shiftr.auth.permissions import PermissionChecker
from shiftr.core.database import get_async_session
from shiftr.services.hr.shift_service import ShiftService
from shiftr.schemas.hr.shift_schema import ShiftCreate, ShiftQuery, ShiftResponse, ShiftUpdate

router = APIRouter()

@router.get("", response_model=List[ShiftResponse])
async def list_shifts(
    user_id: Optional[str] = Query(None, description="Only this user's shifts"),
    filter_start: Optional[datetime] = Query(None, description="Shifts starting at or after (RFC3339)"),
    filter_end: Optional[datetime] = Query(None, description="Shifts ending at or before (RFC3339)"),
    limit: int = Query(0, description="Maximum number of shifts; zero or less for all"),
    session: AsyncSession = Depends(get_async_session),
    checker: PermissionChecker = Depends(get_permission_checker_dependency)
):
    """List shifts ordered by start time; plain users only see their own"""
    query = ShiftQuery(
        user_id=checker.scope_user_filter(user_id),
        start=filter_start,
        end=filter_end,
        limit=limit,
    )
    return await ShiftService(session).list_shifts(query)

@router.get("/{shift_id}", response_model=ShiftResponse)
async def get_shift(
    shift_id: str,
    session: AsyncSession = Depends(get_async_session),
    checker: PermissionChecker = Depends(get_permission_checker_dependency)
):
    """Get a specific shift by ID"""
    return await ShiftService(session).find_shift(shift_id, checker)

@router.post("", response_model=ShiftResponse, status_code=status.HTTP_201_CREATED)
async def create_shift(
    shift: ShiftCreate,
    session: AsyncSession = Depends(get_async_session),
    checker: PermissionChecker = Depends(get_permission_checker_dependency)
):
    """Create a shift; rejected with 409 if it overlaps another shift of the same user"""
    return await ShiftService(session).create_shift(shift, checker)

@router.put("/{shift_id}", response_model=ShiftResponse)
async def update_shift(
    shift_id: str,
    shift: ShiftUpdate,
    session: AsyncSession = Depends(get_async_session),
    checker: PermissionChecker = Depends(get_permission_checker_dependency)
):
    """Update a shift; fields left out keep their stored value"""
    return await ShiftService(session).update_shift(shift_id, shift, checker)

@router.delete("/{shift_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_shift(
    shift_id: str,
    session: AsyncSession = Depends(get_async_session),
    checker: PermissionChecker = Depends(get_permission_checker_dependency)
):
    """Delete a shift"""
    await ShiftService(session).delete_shift(shift_id, checker)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

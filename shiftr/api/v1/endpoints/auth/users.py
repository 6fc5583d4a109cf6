import logging
from typing import List
from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession
from shiftr.api.dependencies import get_permission_checker_dependency, require_permission
from shiftr.auth.permissions import PermissionChecker
from shiftr.core.database import get_async_session
from shiftr.models.shared.enums import Action
from shiftr.schemas.auth.user import UserCreate, UserUpdate, UserResponse
from shiftr.services.auth.user_service import UserService

router = APIRouter()
logger = logging.getLogger(__name__)

@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    user_create: UserCreate,
    session: AsyncSession = Depends(get_async_session),
    checker: PermissionChecker = Depends(require_permission(Action.MANAGE))
):
    """Create new user (admin only)"""
    return await UserService(session).create_user(user_create, checker)

@router.get("", response_model=List[UserResponse])
async def get_users(
    limit: int = Query(0, description="Maximum number of users; zero or less for all"),
    session: AsyncSession = Depends(get_async_session),
    checker: PermissionChecker = Depends(require_permission(Action.MANAGE))
):
    """Get users list (admin only)"""
    return await UserService(session).list_users(checker, limit=limit)

@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str,
    session: AsyncSession = Depends(get_async_session),
    checker: PermissionChecker = Depends(get_permission_checker_dependency)
):
    """Get user by ID (own record unless admin)"""
    return await UserService(session).find_user(user_id, checker)

@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str,
    user_update: UserUpdate,
    session: AsyncSession = Depends(get_async_session),
    checker: PermissionChecker = Depends(get_permission_checker_dependency)
):
    """Update user (own record unless admin; only admins change roles)"""
    return await UserService(session).update_user(user_id, user_update, checker)

@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: str,
    session: AsyncSession = Depends(get_async_session),
    checker: PermissionChecker = Depends(require_permission(Action.MANAGE))
):
    """Delete user and all of their shifts (admin only)"""
    await UserService(session).delete_user(user_id, checker)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

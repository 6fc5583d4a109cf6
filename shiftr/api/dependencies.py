from typing import Optional
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from shiftr.core.database import get_async_session
from shiftr.core.exceptions import AuthenticationError
from shiftr.auth.jwt_handler import decode_access_token
from shiftr.auth.permissions import PermissionChecker
from shiftr.models.auth.user import User
from shiftr.models.shared.enums import Action, UserRole
from shiftr.schemas.auth.token import TokenPayload
from shiftr.services.auth.user_service import UserService
import logging

security = HTTPBearer(auto_error=False)
logger = logging.getLogger(__name__)

async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    session: AsyncSession = Depends(get_async_session)
) -> User:
    """Get current authenticated user"""
    if credentials is None:
        raise AuthenticationError("Authorization header required")

    # Decode token
    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise AuthenticationError("Invalid or expired token")

    try:
        claims = TokenPayload(**payload)
    except PydanticValidationError:
        raise AuthenticationError()

    if claims.role not in (UserRole.USER.value, UserRole.ADMIN.value):
        raise AuthenticationError()

    # Get user from database so deleted users and role changes take effect at once
    user_service = UserService(session)
    user = await user_service.get_user(claims.sub)
    if user is None:
        raise AuthenticationError("User not found")

    # Add request info to context
    request.state.current_user = user

    return user

async def get_permission_checker_dependency(
    current_user: User = Depends(get_current_user)
) -> PermissionChecker:
    """Permission checker for the authenticated caller"""
    return PermissionChecker(current_user.role, current_user.id)

def require_permission(action: Action):
    """
    Dependency to require an owner-independent permission for an endpoint

    Examples:
        require_permission(Action.MANAGE)      # admin only
    """
    async def permission_dependency(
        checker: PermissionChecker = Depends(get_permission_checker_dependency)
    ) -> PermissionChecker:
        checker.require(action)
        return checker

    return permission_dependency

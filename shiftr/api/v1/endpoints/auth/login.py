import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession
from shiftr.core.database import get_async_session
from shiftr.schemas.auth.token import Token
from shiftr.services.auth.auth_service import AuthService

router = APIRouter()
logger = logging.getLogger(__name__)

@router.post("/login", response_model=Token)
async def login(
    request: Request,
    user: Optional[str] = Query(None),
    password: Optional[str] = Query(None, alias="pass"),
    session: AsyncSession = Depends(get_async_session)
):
    """Authenticate user and return a bearer token"""
    auth_service = AuthService(session)

    # Get client info
    ip_address = request.client.host if request.client else None

    account = await auth_service.authenticate_user(
        name=user,
        password=password,
        ip_address=ip_address,
    )

    return Token(token=auth_service.create_token(account))

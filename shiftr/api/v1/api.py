from fastapi import APIRouter
from shiftr.api.v1.endpoints.auth import users
from shiftr.api.v1.endpoints.hr import shifts

api_router = APIRouter()

# User management routes
api_router.include_router(users.router, prefix="/users", tags=["Users"])

# Scheduling routes
api_router.include_router(shifts.router, prefix="/shifts", tags=["Shifts"])

import html
from typing import Optional
from pydantic import BaseModel, ConfigDict, field_validator
from datetime import datetime

from shiftr.core.config import settings
from shiftr.models.shared.enums import UserRole


def _check_name(v: str) -> str:
    v = html.escape(v.strip())
    if not v:
        raise ValueError('name required')
    if len(v) > settings.USER_NAME_MAX_LENGTH:
        raise ValueError(f'name must be at most {settings.USER_NAME_MAX_LENGTH} characters')
    return v


def _check_password(v: str) -> str:
    if not v:
        raise ValueError('password required')
    # bcrypt only looks at the first 72 bytes
    if len(v.encode('utf-8')) > 72:
        raise ValueError('password must be at most 72 bytes')
    return v


class UserCreate(BaseModel):
    name: str
    password: str
    role: UserRole

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        return _check_name(v)

    @field_validator('password')
    @classmethod
    def validate_password(cls, v):
        return _check_password(v)

class UserUpdate(BaseModel):
    """Fields left out keep their stored value"""
    name: Optional[str] = None
    password: Optional[str] = None
    role: Optional[UserRole] = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        return None if v is None else _check_name(v)

    @field_validator('password')
    @classmethod
    def validate_password(cls, v):
        return None if v is None else _check_password(v)

class UserResponse(BaseModel):
    id: str
    name: str
    role: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

from pydantic import BaseModel, ConfigDict
from typing import Optional
from datetime import datetime

class ShiftBase(BaseModel):
    start: Optional[datetime] = None
    end: Optional[datetime] = None

class ShiftCreate(ShiftBase):
    # Defaults to the caller when omitted
    user_id: Optional[str] = None

class ShiftUpdate(ShiftBase):
    """Fields left out keep their stored value"""
    user_id: Optional[str] = None

class ShiftResponse(BaseModel):
    id: str
    user_id: str
    start: datetime
    end: datetime
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

class ShiftQuery(BaseModel):
    """
    Filters for a shift listing.

    user_id: only this user's shifts when set
    start:   only shifts starting at or after this instant
    end:     only shifts ending at or before this instant
    limit:   at most this many rows; zero or negative means no limit
    """
    user_id: Optional[str] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    limit: int = 0

    model_config = ConfigDict(frozen=True)

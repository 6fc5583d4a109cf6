from typing import Optional
from pydantic import BaseModel

class Token(BaseModel):
    token: str

class TokenPayload(BaseModel):
    sub: Optional[str] = None  # user_id
    id: Optional[str] = None
    name: Optional[str] = None
    role: Optional[str] = None
    exp: Optional[int] = None
    type: Optional[str] = None  # always "access"

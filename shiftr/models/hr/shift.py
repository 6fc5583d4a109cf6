from sqlalchemy import Column, ForeignKey, Index, String
from shiftr.core.config import settings
from shiftr.db.base import BaseModel
from shiftr.db.types import UTCDateTime
from shiftr.utils.security_utils import SecurityUtils


def _new_shift_id() -> str:
    return SecurityUtils.generate_secure_token(settings.SHIFT_ID_LENGTH)


class Shift(BaseModel):
    """A work shift spanning the half-open interval [start, end) for one user"""
    __tablename__ = "shifts"

    id = Column(String(settings.SHIFT_ID_LENGTH), primary_key=True, default=_new_shift_id)
    start = Column(UTCDateTime, nullable=False)
    end = Column(UTCDateTime, nullable=False)
    user_id = Column(String(settings.USER_ID_LENGTH), ForeignKey("users.id"), nullable=False)

    __table_args__ = (
        Index("ix_shifts_user_id_start", "user_id", "start"),
    )

    def __repr__(self):
        return f"<Shift {self.id} {self.user_id} {self.start}-{self.end}>"

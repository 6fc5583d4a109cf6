from sqlalchemy import Column, String
from shiftr.core.config import settings
from shiftr.db.base import BaseModel
from shiftr.utils.security_utils import SecurityUtils


def _new_user_id() -> str:
    return SecurityUtils.generate_secure_token(settings.USER_ID_LENGTH)


class User(BaseModel):
    __tablename__ = "users"

    id = Column(String(settings.USER_ID_LENGTH), primary_key=True, default=_new_user_id)
    name = Column(String(settings.USER_NAME_MAX_LENGTH), unique=True, index=True, nullable=False)  # login name
    hashed_password = Column(String(100), nullable=False)                                          # bcrypt hash
    role = Column(String(10), nullable=False)                                                      # user, admin

    def __repr__(self):
        return f"<User {self.name}>"

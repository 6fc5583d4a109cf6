from shiftr.models.auth.user import User
from shiftr.models.hr.shift import Shift


__all__ = [
    "User",
    "Shift",
]

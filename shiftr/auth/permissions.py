# shiftr/auth/permissions.py

from typing import Optional
import logging

from shiftr.core.exceptions import AuthorizationError
from shiftr.models.shared.enums import Action, UserRole

logger = logging.getLogger(__name__)

# Actions a plain user may never perform, whoever owns the resource
ADMIN_ONLY_ACTIONS = frozenset({Action.MANAGE, Action.CHANGE_ROLE})


def is_allowed(role: str, caller_id: str, owner_id: Optional[str], action: Action) -> bool:
    """
    Decide whether a caller may perform ``action`` on a resource owned by ``owner_id``.

    Admins may do anything. Users may act only on resources they own, and
    never on admin-only actions. Unknown roles are denied.
    """
    if role == UserRole.ADMIN.value:
        return True

    if role != UserRole.USER.value:
        return False

    if action in ADMIN_ONLY_ACTIONS:
        return False

    return bool(owner_id) and owner_id == caller_id


class PermissionChecker:
    """
    Check what the authenticated caller may do
    """

    def __init__(self, role: str, user_id: str):
        self.role = role
        self.user_id = user_id

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    def can(self, action: Action, owner_id: Optional[str] = None) -> bool:
        allowed = is_allowed(self.role, self.user_id, owner_id, action)
        if allowed:
            logger.debug(f"Permission granted: {action.value} on {owner_id} for {self.user_id}")
        else:
            logger.debug(f"Permission denied: {action.value} on {owner_id} for {self.user_id}")
        return allowed

    def cannot(self, action: Action, owner_id: Optional[str] = None) -> bool:
        return not self.can(action, owner_id)

    def require(
        self,
        action: Action,
        owner_id: Optional[str] = None,
        custom_message: Optional[str] = None
    ):
        """
        Require permission or raise AuthorizationError
        """
        if self.cannot(action, owner_id):
            message = custom_message or f"Insufficient permissions to {action.value} this resource"
            logger.warning(f"Permission check failed for user {self.user_id}: {message}")
            raise AuthorizationError(message)

    def scope_user_filter(self, requested_user_id: Optional[str]) -> Optional[str]:
        """
        Resolve the user filter for a shift listing.

        Admins get exactly what they asked for. A user with no filter is
        narrowed to their own id; asking for someone else's shifts is denied.
        """
        if self.is_admin:
            return requested_user_id or None

        if not requested_user_id:
            return self.user_id

        self.require(Action.READ, requested_user_id, "Cannot list shifts of another user")
        return requested_user_id

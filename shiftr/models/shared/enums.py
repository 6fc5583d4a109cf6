from enum import Enum


class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"


class Action(str, Enum):
    """Operations checked by the access policy"""
    READ = "read"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    MANAGE = "manage"            # list/create/delete users
    CHANGE_ROLE = "change_role"

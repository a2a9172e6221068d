"""Role-based access control.

Hierarchical roles, higher level = more permissions:
- ADMIN (3) > TEACHER (2) > STUDENT (1) > USER (0)
"""

from enum import Enum


class UserRole(str, Enum):
    """User roles with hierarchical levels."""

    USER = "user"
    STUDENT = "student"
    TEACHER = "teacher"
    ADMIN = "admin"


ROLE_HIERARCHY: dict[UserRole, int] = {
    UserRole.USER: 0,
    UserRole.STUDENT: 1,
    UserRole.TEACHER: 2,
    UserRole.ADMIN: 3,
}


def get_role_level(role: UserRole | str) -> int:
    """Get the permission level for a role (0 for unknown roles)."""
    if isinstance(role, str):
        try:
            role = UserRole(role)
        except ValueError:
            return 0
    return ROLE_HIERARCHY.get(role, 0)


def has_permission(user_role: UserRole | str, required_role: UserRole | str) -> bool:
    """Check if user has at least the required permission level.

    Examples:
        >>> has_permission(UserRole.ADMIN, UserRole.TEACHER)
        True
        >>> has_permission("student", "teacher")
        False
    """
    return get_role_level(user_role) >= get_role_level(required_role)

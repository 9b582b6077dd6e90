"""Role-based access control.

Hierarchy: ADMIN > TEACHER > STUDENT.
"""

from enum import Enum


class UserRole(str, Enum):
    """User roles, lowest to highest."""

    STUDENT = "student"
    TEACHER = "teacher"
    ADMIN = "admin"


ROLE_HIERARCHY: dict[UserRole, int] = {
    UserRole.STUDENT: 1,
    UserRole.TEACHER: 2,
    UserRole.ADMIN: 3,
}


def get_role_level(role: UserRole | str) -> int:
    """Permission level for a role; unknown roles get 0."""
    if isinstance(role, str):
        try:
            role = UserRole(role)
        except ValueError:
            return 0
    return ROLE_HIERARCHY.get(role, 0)


def has_permission(user_role: UserRole | str, required_role: UserRole | str) -> bool:
    """Check if a user has at least the required permission level."""
    return get_role_level(user_role) >= get_role_level(required_role)

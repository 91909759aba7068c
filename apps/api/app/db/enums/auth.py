"""Auth-related enums."""

from enum import Enum


class Role(str, Enum):
    """
    Staff roles.

    - ADMIN: full access, user management, deletions, audit log
    - AGENT: works submissions and the clients assigned to them
    - VIEWER: read-only dashboard access
    """

    ADMIN = "admin"
    AGENT = "agent"
    VIEWER = "viewer"

    @classmethod
    def has_value(cls, value: str) -> bool:
        """Check if value is a valid role."""
        return value in cls._value2member_map_

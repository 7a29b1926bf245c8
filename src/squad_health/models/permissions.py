"""
Role-based permission models for data access control.

Resolves what a user may do from their hierarchy level. Administrators get
every permission; a user whose level cannot be resolved gets nothing.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict

from .organization import HierarchyLevel, LevelPermissions, OrganizationConfig
from .records import User


def effective_permissions(user: User, org_config: OrganizationConfig) -> Optional[LevelPermissions]:
    """
    Permissions granted to `user`.

    Returns None when the user's level is missing or unknown so callers can
    fail closed instead of treating it as an ordinary restricted user.
    """
    if user.is_admin:
        return LevelPermissions.full()

    level = org_config.get_level(user.hierarchy_level_id)
    if level is None:
        return None

    return level.permissions


class UserScope(BaseModel):
    """Complete scope and permissions for a specific user."""
    model_config = ConfigDict(frozen=True)

    user_id: str
    level: Optional[HierarchyLevel] = None
    permissions: LevelPermissions = LevelPermissions.none()
    resolved: bool = False

    @classmethod
    def from_user(cls, user: User, org_config: OrganizationConfig) -> "UserScope":
        """Create UserScope from a User and the organization configuration."""
        permissions = effective_permissions(user, org_config)
        return cls(
            user_id=user.id,
            level=org_config.get_level(user.hierarchy_level_id),
            permissions=permissions or LevelPermissions.none(),
            resolved=permissions is not None,
        )

    @property
    def sees_all_teams(self) -> bool:
        return self.resolved and self.permissions.can_view_all_teams

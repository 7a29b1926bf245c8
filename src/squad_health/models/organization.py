"""
Organization configuration: hierarchy levels and their permission sets.

Levels are ranked with 1 as the most senior. Exactly one level is the
"team member" leaf level; it can never be removed, and no level can be
removed while users still reference it.
"""

from typing import Dict, Iterable, List, Optional, Tuple

from pydantic import BaseModel, model_validator

from ..errors import LevelInUseError, NotFound
from .records import RECORD_CONFIG, User


class LevelPermissions(BaseModel):
    """What holders of a hierarchy level may do."""
    model_config = RECORD_CONFIG

    can_view_all_teams: bool = False
    can_edit_teams: bool = False
    can_manage_users: bool = False
    can_configure_system: bool = False
    can_view_reports: bool = False
    can_export_data: bool = False

    @classmethod
    def full(cls) -> "LevelPermissions":
        return cls(
            can_view_all_teams=True,
            can_edit_teams=True,
            can_manage_users=True,
            can_configure_system=True,
            can_view_reports=True,
            can_export_data=True,
        )

    @classmethod
    def none(cls) -> "LevelPermissions":
        return cls()


class HierarchyLevel(BaseModel):
    """A rung in the organizational hierarchy."""
    model_config = RECORD_CONFIG

    id: str
    name: str
    rank: int
    color: Optional[str] = None
    permissions: LevelPermissions = LevelPermissions()

    @model_validator(mode="before")
    @classmethod
    def accept_backend_rank_names(cls, data):
        """The backend calls the rank `level` or `position`."""
        if isinstance(data, dict) and "rank" not in data:
            for key in ("level", "position"):
                if key in data:
                    data = dict(data)
                    data["rank"] = data.pop(key)
                    break
        return data

    @model_validator(mode="after")
    def validate_rank(self):
        if self.rank < 1:
            raise ValueError(f"Hierarchy level {self.id} must have rank >= 1")
        return self


class OrganizationConfig(BaseModel):
    """Ordered hierarchy levels plus the designated team-member level."""
    model_config = RECORD_CONFIG

    id: str = "default"
    company_name: str = ""
    hierarchy_levels: Tuple[HierarchyLevel, ...]
    team_member_level_id: str

    @model_validator(mode="after")
    def validate_levels(self):
        """Ranks must be unique and the team member level must exist."""
        ranks = [level.rank for level in self.hierarchy_levels]
        if len(ranks) != len(set(ranks)):
            raise ValueError("Hierarchy level ranks must be unique")

        ids = [level.id for level in self.hierarchy_levels]
        if len(ids) != len(set(ids)):
            raise ValueError("Hierarchy level ids must be unique")

        if self.team_member_level_id not in ids:
            raise ValueError(f"Team member level {self.team_member_level_id} is not a configured level")

        ordered = tuple(sorted(self.hierarchy_levels, key=lambda level: level.rank))
        object.__setattr__(self, "hierarchy_levels", ordered)
        return self

    @property
    def levels_by_id(self) -> Dict[str, HierarchyLevel]:
        return {level.id: level for level in self.hierarchy_levels}

    def get_level(self, level_id: Optional[str]) -> Optional[HierarchyLevel]:
        """Look up a level, returning None for unknown or missing ids."""
        if not level_id:
            return None
        return self.levels_by_id.get(level_id)

    @property
    def team_member_level(self) -> HierarchyLevel:
        return self.levels_by_id[self.team_member_level_id]

    def with_level_added(self, level: HierarchyLevel) -> "OrganizationConfig":
        """
        Return a new config with `level` inserted at its rank.

        Existing levels at or below that rank move down by one.
        """
        if level.id in self.levels_by_id:
            raise ValueError(f"Hierarchy level {level.id} already exists")

        shifted = [
            existing.model_copy(update={"rank": existing.rank + 1}) if existing.rank >= level.rank else existing
            for existing in self.hierarchy_levels
        ]
        return self.model_copy(update={"hierarchy_levels": self._ordered(shifted + [level])})

    def without_level(self, level_id: str, users: Iterable[User] = ()) -> "OrganizationConfig":
        """Return a new config without `level_id`, renumbering ranks 1..n."""
        if level_id not in self.levels_by_id:
            raise NotFound("hierarchy level", level_id)

        if level_id == self.team_member_level_id:
            raise LevelInUseError("The team member level cannot be deleted")

        referencing = [user.id for user in users if user.hierarchy_level_id == level_id]
        if referencing:
            raise LevelInUseError(
                f"Hierarchy level {level_id} is still assigned to {len(referencing)} user(s)"
            )

        remaining = [level for level in self.hierarchy_levels if level.id != level_id]
        renumbered = [level.model_copy(update={"rank": index + 1}) for index, level in enumerate(remaining)]
        return self.model_copy(update={"hierarchy_levels": tuple(renumbered)})

    @staticmethod
    def _ordered(levels: List[HierarchyLevel]) -> Tuple[HierarchyLevel, ...]:
        return tuple(sorted(levels, key=lambda level: level.rank))


DEFAULT_ORG_CONFIG = OrganizationConfig(
    id="default",
    company_name="Tech Corp",
    hierarchy_levels=(
        HierarchyLevel(
            id="level-1",
            name="Vice President",
            rank=1,
            color="#7C3AED",
            permissions=LevelPermissions.full(),
        ),
        HierarchyLevel(
            id="level-2",
            name="Director",
            rank=2,
            color="#2563EB",
            permissions=LevelPermissions(
                can_view_all_teams=True,
                can_edit_teams=True,
                can_manage_users=True,
                can_view_reports=True,
                can_export_data=True,
            ),
        ),
        HierarchyLevel(
            id="level-3",
            name="Manager",
            rank=3,
            color="#059669",
            permissions=LevelPermissions(
                can_edit_teams=True,
                can_view_reports=True,
                can_export_data=True,
            ),
        ),
        HierarchyLevel(
            id="level-4",
            name="Team Lead",
            rank=4,
            color="#EA580C",
            permissions=LevelPermissions(can_view_reports=True),
        ),
        HierarchyLevel(
            id="level-5",
            name="Team Member",
            rank=5,
            color="#6B7280",
            permissions=LevelPermissions.none(),
        ),
    ),
    team_member_level_id="level-5",
)

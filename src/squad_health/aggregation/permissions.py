"""
Permission resolver: which teams a user may see.

- Administrators and levels with `can_view_all_teams` see every team
- Everyone else sees teams supervised by themselves or anyone below them,
  plus the teams they are a member of
- A user whose level cannot be resolved sees nothing
"""

import logging
from typing import FrozenSet, Iterable, Optional

from ..models.organization import DEFAULT_ORG_CONFIG, OrganizationConfig
from ..models.permissions import UserScope
from ..models.records import Team, User
from .hierarchy import OrganizationIndex


logger = logging.getLogger(__name__)


def visible_teams(
    user: User,
    teams: Iterable[Team],
    users: Iterable[User],
    org_config: Optional[OrganizationConfig] = None,
) -> FrozenSet[Team]:
    """
    Resolve the set of teams visible to `user`.

    Raises:
        HierarchyCycleDetected: the user's reporting subtree contains a cycle
    """
    org_config = org_config or DEFAULT_ORG_CONFIG
    teams = list(teams)

    scope = UserScope.from_user(user, org_config)
    if not scope.resolved:
        logger.warning(
            f"User {user.id} has unresolvable hierarchy level {user.hierarchy_level_id!r}; no teams visible"
        )
        return frozenset()

    if scope.sees_all_teams:
        return frozenset(teams)

    index = OrganizationIndex(users, teams, org_config)
    overseen = {user.id} | {subordinate.id for subordinate in index.subordinates(user.id)}

    supervised = {team for team in teams if overseen.intersection(team.supervisor_ids)}
    return frozenset(supervised.union(index.member_teams(user)))


def can_access_team(
    user: User,
    team: Team,
    users: Iterable[User],
    org_config: Optional[OrganizationConfig] = None,
) -> bool:
    return team in visible_teams(user, [team], users, org_config)

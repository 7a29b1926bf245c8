"""
Organization traversal over `reports_to` edges and team supervisor chains.
"""

import logging
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Set

from ..errors import HierarchyCycleDetected, HierarchyIntegrityError, NotFound
from ..models.organization import DEFAULT_ORG_CONFIG, HierarchyLevel, OrganizationConfig
from ..models.records import Team, User


logger = logging.getLogger(__name__)


class OrganizationIndex:
    """
    Id lookups over one snapshot of users and teams.

    Direct reports and supervised teams keep the order of the input
    sequences so every traversal is deterministic.
    """

    def __init__(
        self,
        users: Iterable[User],
        teams: Iterable[Team],
        org_config: Optional[OrganizationConfig] = None,
    ):
        self.org_config = org_config or DEFAULT_ORG_CONFIG
        self.users: Dict[str, User] = {user.id: user for user in users}
        self.teams: Dict[str, Team] = {team.id: team for team in teams}

        self._reports: Dict[str, List[User]] = defaultdict(list)
        for user in self.users.values():
            if user.reports_to is not None:
                self._reports[user.reports_to].append(user)

        self._supervised: Dict[str, List[Team]] = defaultdict(list)
        for team in self.teams.values():
            for supervisor_id in dict.fromkeys(team.supervisor_ids):
                self._supervised[supervisor_id].append(team)

    def get_user(self, user_id: str) -> User:
        user = self.users.get(user_id)
        if user is None:
            raise NotFound("user", user_id)
        return user

    def get_team(self, team_id: str) -> Team:
        team = self.teams.get(team_id)
        if team is None:
            raise NotFound("team", team_id)
        return team

    def level_for(self, user: User) -> Optional[HierarchyLevel]:
        return self.org_config.get_level(user.hierarchy_level_id)

    def require_level(self, user: User) -> HierarchyLevel:
        level = self.level_for(user)
        if level is None:
            raise NotFound("hierarchy level", user.hierarchy_level_id or f"<none for user {user.id}>")
        return level

    def direct_reports(self, user_id: str) -> List[User]:
        return list(self._reports.get(user_id, ()))

    def supervised_teams(self, user_id: str) -> List[Team]:
        """Teams whose supervisor chain contains `user_id`."""
        return list(self._supervised.get(user_id, ()))

    def member_teams(self, user: User) -> List[Team]:
        """Teams the user belongs to, by roster or by the user's own team list."""
        return [
            team for team in self.teams.values()
            if user.id in team.members or team.id in user.team_ids
        ]

    def subordinates(self, user_id: str) -> List[User]:
        """
        Everyone reporting to `user_id` directly or transitively, depth-first.

        Raises:
            HierarchyCycleDetected: if the walk reaches a user already on the
                current path or already visited
        """
        found: List[User] = []
        visited: Set[str] = {user_id}

        def walk(manager_id: str, path: List[str]) -> None:
            for report in self._reports.get(manager_id, ()):
                if report.id in visited:
                    raise HierarchyCycleDetected(path + [report.id])
                visited.add(report.id)
                found.append(report)
                walk(report.id, path + [report.id])

        walk(user_id, [user_id])
        return found

    def check_reporting_rank(self, user: User) -> None:
        """
        Verify `user` reports to someone at a more senior level.

        Users or managers without a resolvable level are left to the callers
        that need the level, which raise NotFound themselves.

        Raises:
            HierarchyIntegrityError: manager's rank is not numerically lower
        """
        if user.reports_to is None:
            return

        manager = self.get_user(user.reports_to)
        user_level = self.level_for(user)
        manager_level = self.level_for(manager)
        if user_level is None or manager_level is None:
            return

        if manager_level.rank >= user_level.rank:
            logger.error(
                f"Reporting rank violation: {user.id} (rank {user_level.rank}) -> "
                f"{manager.id} (rank {manager_level.rank})"
            )
            raise HierarchyIntegrityError(user.id, manager.id, user_level.rank, manager_level.rank)

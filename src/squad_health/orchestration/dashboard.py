"""
Dashboard service coordinating the session store and the aggregation engine.

Each call reads a fresh snapshot from the store (concurrently where several
reads are independent), checks the caller's visibility, and hands the
snapshot to the pure aggregation functions. Nothing is cached between calls
beyond what the store itself caches.
"""

import asyncio
import logging
from typing import Dict, Iterable, List, Optional, Tuple

from ..aggregation.dimensions import DimensionRegistry
from ..aggregation.hierarchy import OrganizationIndex
from ..aggregation.permissions import visible_teams
from ..aggregation.rollup import build_org_tree
from ..aggregation.team import individual_responses, response_distribution, summarize_team, user_survey_history
from ..aggregation.trends import dimension_trends
from ..config import Settings
from ..errors import NotFound, PermissionDenied
from ..models.organization import OrganizationConfig
from ..models.permissions import UserScope
from ..models.records import HealthCheckSession, SubmitHealthCheckRequest, Team, User
from ..models.summaries import (
    IndividualResponse,
    OrganizationNode,
    ScoreDistribution,
    TeamHealthSummary,
    TrendReport,
)
from ..periods import DateLike, get_assessment_period
from ..store.base import SessionStore


logger = logging.getLogger(__name__)


class HealthDashboard:
    """
    Read and submit operations behind the health dashboards.

    Settings are passed in explicitly; the service holds no global state.
    """

    def __init__(self, store: SessionStore, settings: Optional[Settings] = None):
        self.store = store
        self.settings = settings or Settings.load()

    async def _load_organization(self) -> Tuple[List[User], List[Team], OrganizationConfig]:
        users, teams, org_config = await asyncio.gather(
            self.store.list_users(),
            self.store.list_teams(),
            self.store.get_organization_config(),
        )
        return users, teams, org_config

    async def _load_registry(self) -> DimensionRegistry:
        return DimensionRegistry(await self.store.get_dimensions())

    async def _sessions_for(self, teams: Iterable[Team]) -> List[HealthCheckSession]:
        """Fetch sessions for many teams concurrently."""
        results = await asyncio.gather(*[self.store.get_team_sessions(team.id) for team in teams])
        return [session for team_sessions in results for session in team_sessions]

    @staticmethod
    def _find_user(users: List[User], user_id: str) -> User:
        for user in users:
            if user.id == user_id:
                return user
        raise NotFound("user", user_id)

    async def _authorize_team(self, user_id: str, team_id: str) -> Team:
        """Resolve a team the user is allowed to see."""
        users, teams, org_config = await self._load_organization()
        user = self._find_user(users, user_id)

        team = next((t for t in teams if t.id == team_id), None)
        if team is None:
            raise NotFound("team", team_id)

        if team not in visible_teams(user, teams, users, org_config):
            logger.warning(
                f"User {user_id} denied access to team {team_id}",
                extra={"user_id": user_id, "team_id": team_id},
            )
            raise PermissionDenied(f"User {user_id} may not view team {team_id}")

        return team

    async def visible_teams(self, user_id: str) -> List[Team]:
        """Teams the user may see, sorted by name."""
        users, teams, org_config = await self._load_organization()
        user = self._find_user(users, user_id)
        visible = visible_teams(user, teams, users, org_config)
        return sorted(visible, key=lambda team: (team.name, team.id))

    async def team_summary(
        self,
        user_id: str,
        team_id: str,
        period: Optional[str] = None,
    ) -> Optional[TeamHealthSummary]:
        """
        Latest-batch summary for a team the user may see.

        Returns None when the team has no completed sessions (in `period`).

        Raises:
            NotFound: unknown user or team
            PermissionDenied: team is outside the user's visible set
        """
        team = await self._authorize_team(user_id, team_id)
        sessions, registry = await asyncio.gather(
            self.store.get_team_sessions(team_id, period),
            self._load_registry(),
        )

        summary = summarize_team(
            team.id,
            sessions,
            period_filter=period,
            registry=registry,
            team_name=team.name,
            config=self.settings.aggregation,
        )
        logger.info(
            f"Team summary for {team_id} requested by {user_id}",
            extra={"user_id": user_id, "team_id": team_id, "period": period, "has_data": summary is not None},
        )
        return summary

    async def organization_tree(self, user_id: str, as_of: Optional[DateLike] = None) -> OrganizationNode:
        """
        Roll-up of everything under `user_id`.

        Raises:
            NotFound: unknown user, or a user in the subtree with no level
            PermissionDenied: the user's level cannot be resolved
            HierarchyCycleDetected: corrupt reporting lines below the user
            HierarchyIntegrityError: reporting line to a less senior level
        """
        users, teams, org_config = await self._load_organization()
        user = self._find_user(users, user_id)

        if not UserScope.from_user(user, org_config).resolved:
            raise PermissionDenied(f"User {user_id} has no resolvable hierarchy level")

        sessions, registry = await asyncio.gather(self._sessions_for(teams), self._load_registry())

        tree = build_org_tree(
            user.id,
            users,
            teams,
            sessions,
            org_config=org_config,
            registry=registry,
            as_of=as_of,
            config=self.settings.aggregation,
        )
        logger.info(
            f"Organization tree for {user_id}: {tree.metrics.total_teams} teams",
            extra={"user_id": user_id, "total_teams": tree.metrics.total_teams},
        )
        return tree

    async def response_distribution(
        self,
        user_id: str,
        team_id: str,
        period: Optional[str] = None,
    ) -> Dict[str, ScoreDistribution]:
        """Red/yellow/green counts per active dimension over all of a team's sessions."""
        team = await self._authorize_team(user_id, team_id)
        sessions, registry = await asyncio.gather(
            self.store.get_team_sessions(team.id, period),
            self._load_registry(),
        )
        return response_distribution(sessions, team_id=team.id, period_filter=period, registry=registry)

    async def individual_responses(
        self,
        user_id: str,
        team_id: str,
        period: Optional[str] = None,
    ) -> List[IndividualResponse]:
        """Each member's session for a team the user may see, newest first."""
        team = await self._authorize_team(user_id, team_id)
        sessions, users = await asyncio.gather(
            self.store.get_team_sessions(team.id, period),
            self.store.list_users(),
        )
        return individual_responses(sessions, team.id, period_filter=period, users=users)

    async def team_trends(self, user_id: str, team_id: str) -> TrendReport:
        """Per-period dimension averages for one team."""
        team = await self._authorize_team(user_id, team_id)
        sessions, registry = await asyncio.gather(self.store.get_team_sessions(team.id), self._load_registry())
        return dimension_trends(
            sessions,
            team_ids=[team.id],
            registry=registry,
            threshold=self.settings.aggregation.trend_threshold,
        )

    async def manager_trends(self, user_id: str) -> TrendReport:
        """Per-period dimension averages across every team the user supervises."""
        users, teams, org_config = await self._load_organization()
        self._find_user(users, user_id)

        supervised = OrganizationIndex(users, teams, org_config).supervised_teams(user_id)
        sessions, registry = await asyncio.gather(self._sessions_for(supervised), self._load_registry())

        return dimension_trends(
            sessions,
            team_ids={team.id for team in supervised},
            registry=registry,
            threshold=self.settings.aggregation.trend_threshold,
        )

    async def submit(self, request: SubmitHealthCheckRequest) -> HealthCheckSession:
        """Submit a new session, deriving its assessment period from its date when absent."""
        if not request.assessment_period:
            request = request.model_copy(update={"assessment_period": get_assessment_period(request.date)})

        session = await self.store.submit_session(request)
        logger.info(
            f"Health check submitted for team {session.team_id}",
            extra={"team_id": session.team_id, "user_id": session.user_id, "period": session.assessment_period},
        )
        return session

    async def survey_history(self, user_id: str) -> List[HealthCheckSession]:
        """The user's completed sessions, newest first."""
        return user_survey_history(await self.store.get_user_sessions(user_id), user_id)

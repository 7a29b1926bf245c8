"""
Hierarchical roll-up: team → manager → director → VP.

The tree is built children first, then each parent is assembled from its
finished children, so every OrganizationNode is immutable once created.

Metrics are additive: a node counts its own teams plus whatever its children
already rolled up. A team in the supervisor chain of both a lead and their
manager therefore appears in both totals.
"""

import logging
from collections import defaultdict
from datetime import timedelta
from typing import Dict, Iterable, List, Optional

from ..config import AggregationConfig
from ..models.organization import OrganizationConfig
from ..models.records import HealthCheckSession, HealthStatus, Team, User
from ..models.summaries import OrganizationNode, OrgMetrics, TeamHealthSummary, TrendCounts
from ..models.utils import score_to_status
from ..periods import DateLike, to_calendar_date
from .dimensions import DEFAULT_DIMENSIONS, DimensionRegistry
from .hierarchy import OrganizationIndex
from .team import summarize_team


logger = logging.getLogger(__name__)


def build_org_tree(
    root_user_id: str,
    users: Iterable[User],
    teams: Iterable[Team],
    sessions: Iterable[HealthCheckSession],
    org_config: Optional[OrganizationConfig] = None,
    registry: Optional[DimensionRegistry] = None,
    as_of: Optional[DateLike] = None,
    config: Optional[AggregationConfig] = None,
) -> OrganizationNode:
    """
    Build the organization tree rooted at `root_user_id`.

    Args:
        root_user_id: User at the top of the requested subtree
        users: Every known user
        teams: Every known team
        sessions: Health check sessions for those teams
        org_config: Hierarchy levels (defaults to the standard five levels)
        registry: Dimension registry (defaults to the standard dimensions)
        as_of: Last day of the completion-rate window (defaults to today)
        config: Aggregation settings

    Raises:
        NotFound: root user, or any user in the subtree, has no resolvable level
        HierarchyCycleDetected: `reports_to` edges below the root form a cycle
        HierarchyIntegrityError: someone reports to a less senior user
            (only when `config.enforce_rank_order` is set)
    """
    index = OrganizationIndex(users, teams, org_config)
    builder = _TreeBuilder(
        index=index,
        sessions=sessions,
        registry=registry or DEFAULT_DIMENSIONS,
        as_of=as_of,
        config=config or AggregationConfig(),
    )

    root = index.get_user(root_user_id)
    index.require_level(root)

    # Surface cycles before any rank check can trip over the same corruption
    subordinates = index.subordinates(root.id)

    node = builder.build(root)
    logger.debug(
        f"Built org tree for {root.id}: {len(subordinates)} subordinates, "
        f"{node.metrics.total_teams} teams, avg health {node.metrics.avg_health}"
    )
    return node


class _TreeBuilder:
    """Holds the per-call lookups shared by every node of one tree."""

    def __init__(
        self,
        index: OrganizationIndex,
        sessions: Iterable[HealthCheckSession],
        registry: DimensionRegistry,
        as_of: Optional[DateLike],
        config: AggregationConfig,
    ):
        self.index = index
        self.registry = registry
        self.config = config

        self.sessions_by_team: Dict[str, List[HealthCheckSession]] = defaultdict(list)
        for session in sessions:
            if session.completed:
                self.sessions_by_team[session.team_id].append(session)

        self.window_end = to_calendar_date(as_of)
        self.window_start = self.window_end - timedelta(days=config.completion_window_days)

        self._summaries: Dict[str, Optional[TeamHealthSummary]] = {}

    def build(self, user: User) -> OrganizationNode:
        level = self.index.require_level(user)

        children = []
        for report in self.index.direct_reports(user.id):
            if self.config.enforce_rank_order:
                self.index.check_reporting_rank(report)
            children.append(self.build(report))

        own_teams = self.index.supervised_teams(user.id)

        team_summaries = {}
        for team in own_teams:
            summary = self.summary_for(team)
            if summary is not None:
                team_summaries[team.id] = summary

        return OrganizationNode(
            user=user,
            level=level,
            children=tuple(children),
            teams=tuple(own_teams),
            team_summaries=team_summaries,
            metrics=self.metrics_for(own_teams, [child.metrics for child in children]),
        )

    def summary_for(self, team: Team) -> Optional[TeamHealthSummary]:
        if team.id not in self._summaries:
            self._summaries[team.id] = summarize_team(
                team.id,
                self.sessions_by_team.get(team.id, ()),
                registry=self.registry,
                team_name=team.name,
                config=self.config,
            )
        return self._summaries[team.id]

    def recent_submissions(self, team_id: str) -> int:
        return sum(
            1 for session in self.sessions_by_team.get(team_id, ())
            if self.window_start < session.date <= self.window_end
        )

    def metrics_for(self, own_teams: List[Team], children: List[OrgMetrics]) -> OrgMetrics:
        """
        Own teams plus the children's finished metrics.

        Each own team with data is one health sample; a child contributes its
        average weighted by its total team count. Children without an average
        are left out rather than counted as zero.
        """
        total_teams = len(own_teams)
        total_members = 0
        recent = 0
        trends = TrendCounts()

        health_sum = 0.0
        health_weight = 0
        dimension_sums: Dict[str, float] = defaultdict(float)
        dimension_weights: Dict[str, int] = defaultdict(int)

        for team in own_teams:
            total_members += team.member_count
            recent += self.recent_submissions(team.id)

            summary = self.summary_for(team)
            if summary is None:
                continue

            trends = trends + summary.trend_counts
            if summary.overall_health is not None:
                health_sum += summary.overall_health
                health_weight += 1
            for dimension in summary.dimensions:
                if dimension.average_score is not None:
                    dimension_sums[dimension.dimension_id] += dimension.average_score
                    dimension_weights[dimension.dimension_id] += 1

        for child in children:
            total_teams += child.total_teams
            total_members += child.total_members
            recent += child.recent_submissions
            trends = trends + child.trends

            if child.avg_health is not None:
                health_sum += child.avg_health * child.total_teams
                health_weight += child.total_teams
            for dimension_id, score in child.dimension_scores.items():
                dimension_sums[dimension_id] += score * child.total_teams
                dimension_weights[dimension_id] += child.total_teams

        avg_health = health_sum / health_weight if health_weight else None

        # Approximation: submissions in the window over rostered members, capped at 1
        completion_rate = min(1.0, recent / total_members) if total_members else 0.0

        return OrgMetrics(
            avg_health=avg_health,
            health_status=self.status_for(avg_health),
            total_teams=total_teams,
            total_members=total_members,
            completion_rate=completion_rate,
            trends=trends,
            dimension_scores={
                key: dimension_sums[key] / weight for key, weight in dimension_weights.items() if weight
            },
            health_samples=health_weight,
            dimension_samples={key: weight for key, weight in dimension_weights.items() if weight},
            recent_submissions=recent,
        )

    def status_for(self, score: Optional[float]) -> Optional[HealthStatus]:
        if score is None:
            return None
        return score_to_status(score, self.config.green_threshold, self.config.yellow_threshold)

"""
Derived output schemas for the aggregation hierarchy:
Session → Team summary → Organization node (manager → director → VP)

These are never persisted. Each dashboard read rebuilds them from the current
session snapshot, children first, so every node is immutable once built.
"""

from datetime import date
from typing import Dict, Iterator, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from .organization import HierarchyLevel
from .records import HealthCheckResponse, HealthScore, HealthStatus, Team, TrendDirection, User
from .utils import health_percentage


SUMMARY_CONFIG = ConfigDict(frozen=True)


class ScoreDistribution(BaseModel):
    """How many responses landed on each colour."""
    model_config = SUMMARY_CONFIG

    red: int = 0
    yellow: int = 0
    green: int = 0

    @classmethod
    def from_scores(cls, scores: List[int]) -> "ScoreDistribution":
        return cls(
            red=sum(1 for s in scores if s == HealthScore.RED),
            yellow=sum(1 for s in scores if s == HealthScore.YELLOW),
            green=sum(1 for s in scores if s == HealthScore.GREEN),
        )

    @property
    def total(self) -> int:
        return self.red + self.yellow + self.green

    def percentages(self) -> Dict[str, float]:
        """Share of each colour in 0-100; all zero when there are no responses."""
        total = self.total
        if total == 0:
            return {"red": 0.0, "yellow": 0.0, "green": 0.0}
        return {
            "red": self.red / total * 100,
            "yellow": self.yellow / total * 100,
            "green": self.green / total * 100,
        }


class TrendCounts(BaseModel):
    """Tally of improving/stable/declining signals."""
    model_config = SUMMARY_CONFIG

    improving: int = 0
    stable: int = 0
    declining: int = 0

    @classmethod
    def from_trends(cls, trends: List[TrendDirection]) -> "TrendCounts":
        return cls(
            improving=sum(1 for t in trends if t == TrendDirection.IMPROVING),
            stable=sum(1 for t in trends if t == TrendDirection.STABLE),
            declining=sum(1 for t in trends if t == TrendDirection.DECLINING),
        )

    def __add__(self, other: "TrendCounts") -> "TrendCounts":
        return TrendCounts(
            improving=self.improving + other.improving,
            stable=self.stable + other.stable,
            declining=self.declining + other.declining,
        )

    @property
    def total(self) -> int:
        return self.improving + self.stable + self.declining


class DimensionSummary(BaseModel):
    """Per-dimension breakdown of a team's latest batch."""
    model_config = SUMMARY_CONFIG

    dimension_id: str
    name: str
    average_score: Optional[float] = None  # None means no responses, never a score of 0
    distribution: ScoreDistribution = ScoreDistribution()
    response_count: int = 0
    trend: Optional[TrendDirection] = None
    status: Optional[HealthStatus] = None

    @property
    def has_data(self) -> bool:
        return self.response_count > 0

    @property
    def health_percentage(self) -> Optional[float]:
        return health_percentage(self.average_score)


class TeamHealthSummary(BaseModel):
    """Latest-batch summary for one team."""
    model_config = SUMMARY_CONFIG

    team_id: str
    team_name: str
    date: date
    assessment_period: Optional[str] = None
    submission_count: int = 0
    dimensions: Tuple[DimensionSummary, ...] = ()
    overall_health: Optional[float] = None
    status: Optional[HealthStatus] = None
    trend_counts: TrendCounts = TrendCounts()

    def dimension(self, dimension_id: str) -> Optional[DimensionSummary]:
        for summary in self.dimensions:
            if summary.dimension_id == dimension_id:
                return summary
        return None


class IndividualResponse(BaseModel):
    """One submitter's full session on the team dashboard."""
    model_config = SUMMARY_CONFIG

    session_id: str
    user_id: str
    user_name: str
    date: date
    assessment_period: Optional[str] = None
    responses: Tuple[HealthCheckResponse, ...] = ()


class OrgMetrics(BaseModel):
    """Roll-up metrics for an organization subtree."""
    model_config = SUMMARY_CONFIG

    avg_health: Optional[float] = None
    health_status: Optional[HealthStatus] = None
    total_teams: int = 0
    total_members: int = 0
    completion_rate: float = 0.0
    trends: TrendCounts = TrendCounts()
    dimension_scores: Dict[str, float] = {}

    # Weights behind avg_health and dimension_scores, and the completion numerator
    health_samples: int = 0
    dimension_samples: Dict[str, int] = {}
    recent_submissions: int = 0


class OrganizationNode(BaseModel):
    """A user, the teams they supervise directly, and everyone reporting to them."""
    model_config = SUMMARY_CONFIG

    user: User
    level: HierarchyLevel
    children: Tuple["OrganizationNode", ...] = ()
    teams: Tuple[Team, ...] = ()
    team_summaries: Dict[str, TeamHealthSummary] = {}
    metrics: OrgMetrics = OrgMetrics()

    @property
    def id(self) -> str:
        return self.user.id

    def iter_nodes(self) -> Iterator["OrganizationNode"]:
        """Depth-first walk, this node first."""
        yield self
        for child in self.children:
            yield from child.iter_nodes()

    def find(self, user_id: str) -> Optional["OrganizationNode"]:
        for node in self.iter_nodes():
            if node.user.id == user_id:
                return node
        return None

    def nodes_at_level(self, level_id: str) -> List["OrganizationNode"]:
        return [node for node in self.iter_nodes() if node.level.id == level_id]

    @property
    def health_status(self) -> Optional[HealthStatus]:
        return self.metrics.health_status

    @property
    def health_percentage(self) -> Optional[float]:
        return health_percentage(self.metrics.avg_health)


class DimensionTrend(BaseModel):
    """Average score of one dimension across ordered assessment periods."""
    model_config = SUMMARY_CONFIG

    dimension_id: str
    scores: Tuple[Optional[float], ...] = ()
    direction: TrendDirection = TrendDirection.UNKNOWN


class TrendReport(BaseModel):
    """Per-period dimension averages for one team or a set of teams."""
    model_config = SUMMARY_CONFIG

    periods: Tuple[str, ...] = ()
    dimensions: Tuple[DimensionTrend, ...] = ()

    def for_dimension(self, dimension_id: str) -> Optional[DimensionTrend]:
        return next((d for d in self.dimensions if d.dimension_id == dimension_id), None)


OrganizationNode.model_rebuild()

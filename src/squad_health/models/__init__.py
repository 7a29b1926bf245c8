"""
Data models for the squad health aggregation system.

This module provides Pydantic models for:
- Backend records (dimensions, users, teams, sessions)
- Organization configuration (hierarchy levels, permissions)
- Derived summaries (team summaries, organization nodes, trend reports)
"""

from .records import (
    Cadence,
    Dimension,
    HealthCheckResponse,
    HealthCheckSession,
    HealthScore,
    HealthStatus,
    SubmitHealthCheckRequest,
    SupervisorLink,
    Team,
    TrendDirection,
    User,
)
from .organization import (
    DEFAULT_ORG_CONFIG,
    HierarchyLevel,
    LevelPermissions,
    OrganizationConfig,
)
from .permissions import UserScope, effective_permissions
from .summaries import (
    DimensionSummary,
    DimensionTrend,
    IndividualResponse,
    OrganizationNode,
    OrgMetrics,
    ScoreDistribution,
    TeamHealthSummary,
    TrendCounts,
    TrendReport,
)
from .utils import (
    classify_trend,
    format_distribution_for_display,
    health_percentage,
    score_to_status,
)

__all__ = [
    # Records
    "Cadence",
    "Dimension",
    "HealthCheckResponse",
    "HealthCheckSession",
    "HealthScore",
    "HealthStatus",
    "SubmitHealthCheckRequest",
    "SupervisorLink",
    "Team",
    "TrendDirection",
    "User",

    # Organization
    "DEFAULT_ORG_CONFIG",
    "HierarchyLevel",
    "LevelPermissions",
    "OrganizationConfig",

    # Permissions
    "UserScope",
    "effective_permissions",

    # Summaries
    "DimensionSummary",
    "DimensionTrend",
    "IndividualResponse",
    "OrganizationNode",
    "OrgMetrics",
    "ScoreDistribution",
    "TeamHealthSummary",
    "TrendCounts",
    "TrendReport",

    # Utilities
    "classify_trend",
    "format_distribution_for_display",
    "health_percentage",
    "score_to_status",
]

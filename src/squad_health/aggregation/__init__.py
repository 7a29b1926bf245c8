"""
Aggregation engine: pure, synchronous functions over immutable snapshots.

Session → team summary → organization roll-up, plus trend reports, the
assessment period resolver and the permission resolver.
"""

from ..periods import (
    AssessmentPeriod,
    compare_assessment_periods,
    get_assessment_period,
    get_current_assessment_period,
    parse_assessment_period,
    period_bounds,
    sort_assessment_periods,
)
from .dimensions import DEFAULT_DIMENSIONS, UNKNOWN_DIMENSION, DimensionRegistry
from .hierarchy import OrganizationIndex
from .permissions import can_access_team, visible_teams
from .rollup import build_org_tree
from .team import individual_responses, response_distribution, summarize_team, user_survey_history
from .trends import dimension_trends

__all__ = [
    # Periods
    "AssessmentPeriod",
    "compare_assessment_periods",
    "get_assessment_period",
    "get_current_assessment_period",
    "parse_assessment_period",
    "period_bounds",
    "sort_assessment_periods",

    # Dimensions
    "DEFAULT_DIMENSIONS",
    "UNKNOWN_DIMENSION",
    "DimensionRegistry",

    # Organization
    "OrganizationIndex",
    "build_org_tree",

    # Teams
    "dimension_trends",
    "individual_responses",
    "response_distribution",
    "summarize_team",
    "user_survey_history",

    # Permissions
    "can_access_team",
    "visible_teams",
]

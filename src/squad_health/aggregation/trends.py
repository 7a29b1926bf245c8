"""
Period-over-period trend reports.

Averages every response per dimension within each assessment period, for one
team or for all teams a manager supervises, and classifies the direction of
the most recent change.
"""

import logging
from collections import defaultdict
from typing import Collection, Dict, Iterable, List, Optional

from ..models.records import HealthCheckSession
from ..models.summaries import DimensionTrend, TrendReport
from ..models.utils import DEFAULT_TREND_THRESHOLD, classify_trend
from ..periods import parse_assessment_period, sort_assessment_periods
from .dimensions import DEFAULT_DIMENSIONS, DimensionRegistry


logger = logging.getLogger(__name__)


def dimension_trends(
    sessions: Iterable[HealthCheckSession],
    team_ids: Optional[Collection[str]] = None,
    registry: Optional[DimensionRegistry] = None,
    threshold: float = DEFAULT_TREND_THRESHOLD,
) -> TrendReport:
    """
    Build a trend report over completed sessions.

    Sessions whose period label cannot be parsed are excluded from the
    ordering. A period in which a dimension received no responses is
    reported as None rather than 0.
    """
    registry = registry or DEFAULT_DIMENSIONS

    matching = [
        session for session in sessions
        if session.completed
        and (team_ids is None or session.team_id in team_ids)
        and parse_assessment_period(session.assessment_period) is not None
    ]
    periods = sort_assessment_periods(session.assessment_period for session in matching)
    if not periods:
        return TrendReport()

    # dimension -> period -> scores
    collected: Dict[str, Dict[str, List[int]]] = defaultdict(lambda: defaultdict(list))
    seen_order: List[str] = []
    for session in matching:
        for response in session.responses:
            if response.dimension_id not in collected:
                seen_order.append(response.dimension_id)
            collected[response.dimension_id][session.assessment_period].append(int(response.score))

    # Configured dimensions first, then anything historical the registry no longer knows
    ordered_ids = [d.id for d in registry if d.id in collected]
    ordered_ids += [dimension_id for dimension_id in seen_order if not registry.contains(dimension_id)]

    dimensions = []
    for dimension_id in ordered_ids:
        by_period = collected[dimension_id]
        scores = tuple(
            sum(by_period[period]) / len(by_period[period]) if by_period.get(period) else None
            for period in periods
        )
        dimensions.append(DimensionTrend(
            dimension_id=dimension_id,
            scores=scores,
            direction=classify_trend(scores, threshold),
        ))

    logger.debug(f"Trend report over {len(matching)} sessions, {len(periods)} periods, {len(dimensions)} dimensions")

    return TrendReport(periods=tuple(periods), dimensions=tuple(dimensions))

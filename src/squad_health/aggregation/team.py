"""
Team-level aggregation.

Summaries are built from the team's latest submission batch: the sessions
sharing the most recent submission date. Older sessions only show up through
an explicit period filter or the history views.
"""

import logging
from datetime import date
from typing import Dict, Iterable, List, Optional

from ..config import AggregationConfig
from ..models.records import HealthCheckSession, HealthStatus, User
from ..models.summaries import (
    DimensionSummary,
    IndividualResponse,
    ScoreDistribution,
    TeamHealthSummary,
    TrendCounts,
)
from ..models.utils import score_to_status, weighted_mean
from .dimensions import DEFAULT_DIMENSIONS, DimensionRegistry


logger = logging.getLogger(__name__)


def filter_sessions(
    sessions: Iterable[HealthCheckSession],
    team_id: Optional[str] = None,
    period_filter: Optional[str] = None,
) -> List[HealthCheckSession]:
    """Completed sessions, optionally restricted to one team and one period."""
    return [
        session for session in sessions
        if session.completed
        and (team_id is None or session.team_id == team_id)
        and (period_filter is None or session.assessment_period == period_filter)
    ]


def latest_batch(sessions: List[HealthCheckSession]) -> List[HealthCheckSession]:
    """Sessions submitted on the most recent date, in their original order."""
    if not sessions:
        return []
    latest: date = max(session.date for session in sessions)
    return [session for session in sessions if session.date == latest]


def summarize_team(
    team_id: str,
    sessions: Iterable[HealthCheckSession],
    period_filter: Optional[str] = None,
    registry: Optional[DimensionRegistry] = None,
    team_name: Optional[str] = None,
    config: Optional[AggregationConfig] = None,
) -> Optional[TeamHealthSummary]:
    """
    Summarize a team's latest batch of completed sessions.

    Args:
        team_id: Team to summarize
        sessions: Sessions to draw from; other teams' sessions are ignored
        period_filter: Only consider sessions in this assessment period
        registry: Dimension registry (defaults to the standard dimensions)
        team_name: Display name for the summary (defaults to the id)
        config: Status thresholds (defaults to AggregationConfig())

    Returns:
        TeamHealthSummary, or None when no completed session matches
    """
    registry = registry or DEFAULT_DIMENSIONS
    config = config or AggregationConfig()

    def status_for(score: Optional[float]) -> Optional[HealthStatus]:
        if score is None:
            return None
        return score_to_status(score, config.green_threshold, config.yellow_threshold)

    matching = filter_sessions(sessions, team_id=team_id, period_filter=period_filter)
    if not matching:
        logger.debug(f"No completed sessions for team {team_id} (period={period_filter})")
        return None

    batch = latest_batch(matching)
    batch_date = batch[0].date

    dimension_summaries = []
    averages: Dict[str, float] = {}

    for dimension in registry.list_active_dimensions():
        responses = [response for session in batch for response in session.responses_for(dimension.id)]
        scores = [int(response.score) for response in responses]

        average = sum(scores) / len(scores) if scores else None
        if average is not None:
            averages[dimension.id] = average

        dimension_summaries.append(DimensionSummary(
            dimension_id=dimension.id,
            name=dimension.name,
            average_score=average,
            distribution=ScoreDistribution.from_scores(scores),
            response_count=len(scores),
            # First match in iteration order wins when submitters disagree
            trend=responses[0].trend if responses else None,
            status=status_for(average),
        ))

    trend_counts = TrendCounts.from_trends([
        response.trend for session in batch for response in session.responses
    ])

    overall_health = weighted_mean(averages, registry.weights()) if averages else None

    logger.debug(
        f"Team {team_id}: {len(batch)} of {len(matching)} sessions in batch {batch_date}, "
        f"{len(averages)} dimensions with data"
    )

    return TeamHealthSummary(
        team_id=team_id,
        team_name=team_name or team_id,
        date=batch_date,
        assessment_period=period_filter or batch[0].assessment_period,
        submission_count=len(batch),
        dimensions=tuple(dimension_summaries),
        overall_health=overall_health,
        status=status_for(overall_health),
        trend_counts=trend_counts,
    )


def response_distribution(
    sessions: Iterable[HealthCheckSession],
    team_id: Optional[str] = None,
    period_filter: Optional[str] = None,
    registry: Optional[DimensionRegistry] = None,
) -> Dict[str, ScoreDistribution]:
    """
    Red/yellow/green counts per active dimension over every matching session,
    not only the latest batch.
    """
    registry = registry or DEFAULT_DIMENSIONS
    matching = filter_sessions(sessions, team_id=team_id, period_filter=period_filter)

    scores: Dict[str, List[int]] = {d.id: [] for d in registry.list_active_dimensions()}
    for session in matching:
        for response in session.responses:
            if response.dimension_id in scores:
                scores[response.dimension_id].append(int(response.score))

    return {dimension_id: ScoreDistribution.from_scores(values) for dimension_id, values in scores.items()}


def user_survey_history(sessions: Iterable[HealthCheckSession], user_id: str) -> List[HealthCheckSession]:
    """A user's completed sessions, newest first."""
    own = [session for session in sessions if session.completed and session.user_id == user_id]
    return sorted(own, key=lambda session: session.date, reverse=True)


def individual_responses(
    sessions: Iterable[HealthCheckSession],
    team_id: str,
    period_filter: Optional[str] = None,
    users: Iterable[User] = (),
) -> List[IndividualResponse]:
    """
    Every completed session of a team, one row per submitter, newest first.

    Responses within a row are ordered by dimension id. Submitters missing
    from `users` are shown by their id.
    """
    names = {user.id: user.display_name for user in users}
    matching = filter_sessions(sessions, team_id=team_id, period_filter=period_filter)

    return [
        IndividualResponse(
            session_id=session.id,
            user_id=session.user_id,
            user_name=names.get(session.user_id, session.user_id),
            date=session.date,
            assessment_period=session.assessment_period,
            responses=tuple(sorted(session.responses, key=lambda response: response.dimension_id)),
        )
        for session in sorted(matching, key=lambda session: session.date, reverse=True)
    ]

"""Tests for team-level aggregation."""

from datetime import date

import pytest

from squad_health.aggregation import (
    DimensionRegistry,
    individual_responses,
    response_distribution,
    summarize_team,
    user_survey_history,
)
from squad_health.config import AggregationConfig
from squad_health.models import Dimension, HealthStatus, TrendDirection


@pytest.fixture
def two_dimensions():
    return DimensionRegistry([
        Dimension(id="mission", name="Mission"),
        Dimension(id="speed", name="Speed"),
    ])


class TestSummarizeTeam:
    """Latest-batch summaries."""

    def test_averages_and_distribution(self, make_session, two_dimensions):
        """Two sessions scoring mission 1 and 3 average to 2.0."""
        sessions = [
            make_session("a", "t1", "u1", date(2024, 3, 1), {"mission": 1}),
            make_session("b", "t1", "u2", date(2024, 3, 1), {"mission": 3}),
        ]

        summary = summarize_team("t1", sessions, registry=two_dimensions)

        mission = summary.dimension("mission")
        assert mission.average_score == 2.0
        assert mission.distribution.red == 1
        assert mission.distribution.yellow == 0
        assert mission.distribution.green == 1
        assert mission.response_count == 2

    def test_only_latest_batch_counts(self, make_session, two_dimensions):
        """An older session never affects the averages."""
        sessions = [
            make_session("old", "t1", "u1", date(2024, 2, 1), {"mission": 1, "speed": 1}),
            make_session("new", "t1", "u1", date(2024, 3, 1), {"mission": 3, "speed": 3}),
        ]

        summary = summarize_team("t1", sessions, registry=two_dimensions)

        assert summary.date == date(2024, 3, 1)
        assert summary.submission_count == 1
        assert summary.dimension("mission").average_score == 3.0
        assert summary.dimension("speed").distribution.red == 0

    def test_batch_is_grouped_by_calendar_date(self, make_session, two_dimensions):
        """Timestamps on the same day land in the same batch."""
        sessions = [
            make_session("a", "t1", "u1", "2024-03-01T08:00:00Z", {"mission": 1}),
            make_session("b", "t1", "u2", "2024-03-01T17:30:00Z", {"mission": 2}),
        ]

        summary = summarize_team("t1", sessions, registry=two_dimensions)

        assert summary.submission_count == 2
        assert summary.dimension("mission").average_score == 1.5

    def test_no_sessions_returns_none(self, two_dimensions):
        assert summarize_team("t1", [], registry=two_dimensions) is None

    def test_no_sessions_in_period_returns_none(self, make_session, two_dimensions):
        """An empty period is no data, not a summary of zeros."""
        sessions = [make_session("a", "t1", "u1", date(2024, 3, 1), {"mission": 2})]

        assert summarize_team("t1", sessions, period_filter="2024 - 1st Half", registry=two_dimensions) is None

    def test_incomplete_and_foreign_sessions_ignored(self, make_session, two_dimensions):
        sessions = [
            make_session("a", "t1", "u1", date(2024, 3, 1), {"mission": 2}),
            make_session("b", "t1", "u2", date(2024, 3, 5), {"mission": 1}, completed=False),
            make_session("c", "t2", "u3", date(2024, 3, 9), {"mission": 1}),
        ]

        summary = summarize_team("t1", sessions, registry=two_dimensions)

        assert summary.date == date(2024, 3, 1)
        assert summary.dimension("mission").average_score == 2.0

    def test_missing_dimension_is_no_data_not_zero(self, make_session, two_dimensions):
        sessions = [make_session("a", "t1", "u1", date(2024, 3, 1), {"mission": 2})]

        speed = summarize_team("t1", sessions, registry=two_dimensions).dimension("speed")

        assert speed.average_score is None
        assert speed.has_data is False
        assert speed.response_count == 0
        assert speed.trend is None
        assert speed.status is None

    def test_period_filter_selects_older_batch(self, make_session, two_dimensions):
        sessions = [
            make_session("h1", "t1", "u1", date(2023, 9, 1), {"mission": 1}),
            make_session("h2", "t1", "u1", date(2024, 3, 1), {"mission": 3}),
        ]

        summary = summarize_team("t1", sessions, period_filter="2023 - 1st Half", registry=two_dimensions)

        assert summary.assessment_period == "2023 - 1st Half"
        assert summary.dimension("mission").average_score == 1.0

    def test_trend_is_first_matching_response(self, make_session, two_dimensions):
        sessions = [
            make_session("a", "t1", "u1", date(2024, 3, 1), {"mission": 2}, trend="declining"),
            make_session("b", "t1", "u2", date(2024, 3, 1), {"mission": 2}, trend="improving"),
        ]

        mission = summarize_team("t1", sessions, registry=two_dimensions).dimension("mission")

        assert mission.trend == TrendDirection.DECLINING

    def test_inactive_dimensions_excluded(self, make_session):
        registry = DimensionRegistry([
            Dimension(id="mission", name="Mission"),
            Dimension(id="legacy", name="Legacy", is_active=False),
        ])
        sessions = [make_session("a", "t1", "u1", date(2024, 3, 1), {"mission": 2, "legacy": 1})]

        summary = summarize_team("t1", sessions, registry=registry)

        assert [d.dimension_id for d in summary.dimensions] == ["mission"]

    def test_overall_health_uses_dimension_weights(self, make_session):
        registry = DimensionRegistry([
            Dimension(id="mission", name="Mission", weight=3.0),
            Dimension(id="speed", name="Speed", weight=1.0),
        ])
        sessions = [make_session("a", "t1", "u1", date(2024, 3, 1), {"mission": 3, "speed": 1})]

        summary = summarize_team("t1", sessions, registry=registry)

        assert summary.overall_health == pytest.approx(2.5)
        assert summary.status == HealthStatus.GREEN

    def test_overall_health_none_without_responses(self, make_session, two_dimensions):
        sessions = [make_session("a", "t1", "u1", date(2024, 3, 1), {})]

        summary = summarize_team("t1", sessions, registry=two_dimensions)

        assert summary is not None
        assert summary.overall_health is None
        assert summary.status is None

    def test_summary_metadata(self, org_sessions):
        summary = summarize_team("team-a", org_sessions, team_name="Alpha")

        assert summary.team_id == "team-a"
        assert summary.team_name == "Alpha"
        assert summary.assessment_period == "2023 - 2nd Half"
        assert summary.submission_count == 2
        assert summary.overall_health == pytest.approx(2.25)
        assert summary.trend_counts.improving == 2
        assert summary.trend_counts.declining == 2
        assert summary.trend_counts.stable == 0

    def test_team_name_defaults_to_id(self, org_sessions):
        assert summarize_team("team-b", org_sessions).team_name == "team-b"

    def test_status_follows_configured_thresholds(self, org_sessions):
        """team-a averages 2.25 overall, mission 2.0 and speed 2.5."""
        default = summarize_team("team-a", org_sessions)
        strict = summarize_team(
            "team-a", org_sessions, config=AggregationConfig(green_threshold=3.0, yellow_threshold=2.2),
        )

        assert default.status == HealthStatus.YELLOW
        assert default.dimension("speed").status == HealthStatus.GREEN
        assert strict.status == HealthStatus.YELLOW
        assert strict.dimension("speed").status == HealthStatus.YELLOW
        assert strict.dimension("mission").status == HealthStatus.RED


class TestResponseDistribution:
    """Distribution over every matching session."""

    def test_counts_all_batches(self, org_sessions, two_dimensions):
        distribution = response_distribution(org_sessions, team_id="team-a", registry=two_dimensions)

        assert distribution["mission"].red == 1
        assert distribution["mission"].green == 2
        assert distribution["speed"].yellow == 1
        assert distribution["speed"].green == 2
        assert distribution["mission"].total == 3

    def test_percentages(self, org_sessions, two_dimensions):
        mission = response_distribution(org_sessions, team_id="team-a", registry=two_dimensions)["mission"]

        percentages = mission.percentages()
        assert percentages["green"] == pytest.approx(200 / 3)
        assert percentages["yellow"] == 0.0

    def test_empty_team(self, org_sessions, two_dimensions):
        distribution = response_distribution(org_sessions, team_id="team-c", registry=two_dimensions)

        assert distribution["mission"].total == 0
        assert distribution["mission"].percentages() == {"red": 0.0, "yellow": 0.0, "green": 0.0}


class TestIndividualResponses:
    """One row per submitted session."""

    def test_rows_newest_first_with_names(self, org_sessions, org_users):
        rows = individual_responses(org_sessions, "team-a", users=org_users)

        assert [row.session_id for row in rows] == ["s1", "s2", "s0"]
        assert [row.user_name for row in rows] == ["Ana Silva", "Ben Ito", "Ana Silva"]
        assert rows[0].assessment_period == "2023 - 2nd Half"
        assert [(r.dimension_id, int(r.score)) for r in rows[0].responses] == [("mission", 1), ("speed", 2)]

    def test_unknown_submitter_shown_by_id(self, org_sessions):
        rows = individual_responses(org_sessions, "team-b")

        assert [row.user_name for row in rows] == ["x1"]

    def test_period_filter(self, org_sessions):
        assert individual_responses(org_sessions, "team-a", period_filter="2024 - 1st Half") == []


def test_user_survey_history_newest_first(org_sessions):
    history = user_survey_history(org_sessions, "m1")

    assert [s.id for s in history] == ["s1", "s0"]
    assert user_survey_history(org_sessions, "x2") == []

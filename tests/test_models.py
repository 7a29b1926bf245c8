"""Tests for record models and organization configuration."""

from datetime import date

import pytest
from pydantic import ValidationError

from squad_health.errors import LevelInUseError, NotFound
from squad_health.models import (
    DEFAULT_ORG_CONFIG,
    HealthCheckResponse,
    HealthCheckSession,
    HealthScore,
    HierarchyLevel,
    OrganizationConfig,
    SubmitHealthCheckRequest,
    Team,
    TrendDirection,
    User,
)


class TestSessionRecords:
    """Sessions and responses from backend payloads."""

    def test_camel_case_payload(self):
        session = HealthCheckSession.model_validate({
            "id": "s1",
            "teamId": "t1",
            "userId": "u1",
            "date": "2024-03-01T10:15:00Z",
            "responses": [{"dimensionId": "mission", "score": 3, "trend": "improving", "comment": ""}],
            "completed": True,
        })

        assert session.date == date(2024, 3, 1)
        assert session.assessment_period == "2023 - 2nd Half"
        assert session.responses[0].score == HealthScore.GREEN
        assert session.responses[0].comment is None

    def test_explicit_period_is_kept(self):
        session = HealthCheckSession(
            id="s1", team_id="t1", user_id="u1", date=date(2024, 3, 1), assessment_period="2024 - 1st Half",
        )
        assert session.assessment_period == "2024 - 1st Half"

    def test_sessions_are_immutable(self):
        session = HealthCheckSession(id="s1", team_id="t1", user_id="u1", date=date(2024, 3, 1))
        with pytest.raises(ValidationError):
            session.completed = False

    @pytest.mark.parametrize("score", [0, 4, -1])
    def test_score_out_of_range(self, score):
        with pytest.raises(ValidationError):
            HealthCheckResponse(dimension_id="mission", score=score)

    def test_unknown_trend_rejected(self):
        with pytest.raises(ValidationError):
            HealthCheckResponse(dimension_id="mission", score=2, trend=TrendDirection.UNKNOWN)

    def test_responses_for(self):
        session = HealthCheckSession(
            id="s1", team_id="t1", user_id="u1", date=date(2024, 3, 1),
            responses=[{"dimensionId": "mission", "score": 1}, {"dimensionId": "speed", "score": 2}],
        )
        assert [r.score for r in session.responses_for("speed")] == [2]

    def test_submit_request_payload(self):
        request = SubmitHealthCheckRequest(
            team_id="t1", user_id="u1", date="2024-03-01",
            responses=[HealthCheckResponse(dimension_id="mission", score=2)],
        )

        payload = request.to_payload()

        assert payload["teamId"] == "t1"
        assert payload["date"] == "2024-03-01"
        assert payload["responses"][0] == {"dimensionId": "mission", "score": 2, "trend": "stable"}
        assert "assessmentPeriod" not in payload


class TestUserAndTeam:
    """Organization records."""

    def test_blank_references_become_none(self):
        user = User.model_validate({"id": "u1", "reportsTo": "", "hierarchyLevelId": ""})
        assert user.reports_to is None
        assert user.hierarchy_level_id is None

    def test_display_name(self):
        assert User(id="u1", name="Ana").display_name == "Ana"
        assert User(id="u1", username="ana").display_name == "ana"
        assert User(id="u1").display_name == "u1"

    def test_team_helpers(self, org_teams):
        alpha = org_teams[0]
        assert alpha.member_count == 3
        assert alpha.supervisor_ids == ["lead1", "mgr1", "director", "vp"]
        assert alpha.team_lead_id == "lead1"
        assert alpha.is_supervised_by("director")
        assert not alpha.is_supervised_by("mgr2")

    def test_team_payload(self):
        team = Team.model_validate({
            "id": "t1",
            "name": "One",
            "cadence": "weekly",
            "nextCheckDate": "2024-04-01",
            "supervisorChain": [{"userId": "lead", "levelId": "level-4"}],
        })
        assert team.next_check_date == date(2024, 4, 1)
        assert team.team_lead_id == "lead"

    def test_invalid_cadence(self):
        with pytest.raises(ValidationError):
            Team(id="t1", name="One", cadence="daily")


class TestOrganizationConfig:
    """Hierarchy level management."""

    def test_default_levels_ordered_by_rank(self):
        assert [level.name for level in DEFAULT_ORG_CONFIG.hierarchy_levels] == [
            "Vice President", "Director", "Manager", "Team Lead", "Team Member",
        ]
        assert DEFAULT_ORG_CONFIG.team_member_level.id == "level-5"

    def test_levels_sorted_on_construction(self):
        config = OrganizationConfig(
            hierarchy_levels=[
                HierarchyLevel(id="b", name="B", rank=2),
                HierarchyLevel(id="a", name="A", rank=1),
            ],
            team_member_level_id="b",
        )
        assert [level.id for level in config.hierarchy_levels] == ["a", "b"]

    def test_duplicate_ranks_rejected(self):
        with pytest.raises(ValidationError, match="ranks must be unique"):
            OrganizationConfig(
                hierarchy_levels=[HierarchyLevel(id="a", name="A", rank=1), HierarchyLevel(id="b", name="B", rank=1)],
                team_member_level_id="b",
            )

    def test_team_member_level_must_exist(self):
        with pytest.raises(ValidationError, match="Team member level"):
            OrganizationConfig(
                hierarchy_levels=[HierarchyLevel(id="a", name="A", rank=1)],
                team_member_level_id="zzz",
            )

    def test_backend_position_field(self):
        level = HierarchyLevel.model_validate({"id": "x", "name": "X", "position": 3})
        assert level.rank == 3

    def test_with_level_added_shifts_lower_levels(self):
        config = DEFAULT_ORG_CONFIG.with_level_added(HierarchyLevel(id="senior-mgr", name="Senior Manager", rank=3))

        ranks = {level.id: level.rank for level in config.hierarchy_levels}
        assert ranks == {
            "level-1": 1, "level-2": 2, "senior-mgr": 3, "level-3": 4, "level-4": 5, "level-5": 6,
        }
        assert DEFAULT_ORG_CONFIG.get_level("level-3").rank == 3

    def test_without_level_renumbers(self):
        config = DEFAULT_ORG_CONFIG.without_level("level-4", users=[])

        assert [(level.id, level.rank) for level in config.hierarchy_levels] == [
            ("level-1", 1), ("level-2", 2), ("level-3", 3), ("level-5", 4),
        ]

    def test_without_level_guards(self, org_users):
        with pytest.raises(LevelInUseError, match="team member level"):
            DEFAULT_ORG_CONFIG.without_level("level-5")
        with pytest.raises(LevelInUseError, match="still assigned"):
            DEFAULT_ORG_CONFIG.without_level("level-4", users=org_users)
        with pytest.raises(NotFound):
            DEFAULT_ORG_CONFIG.without_level("level-99")

"""Tests for the in-memory session store and snapshot loading."""

import json
from datetime import date

import pytest
from pydantic import ValidationError

from squad_health.errors import NotFound, SubmissionError
from squad_health.models import HealthCheckResponse, SubmitHealthCheckRequest
from squad_health.store import InMemorySessionStore, StoreError, load_snapshot


SNAPSHOT_YAML = """
users:
  - id: lead
    name: Lee Novak
    hierarchyLevelId: level-4
  - id: dev
    name: Ana Silva
    hierarchyLevelId: level-5
    reportsTo: lead
    teamIds: [t1]
teams:
  - id: t1
    name: Platform
    members: [lead, dev]
    supervisorChain:
      - userId: lead
        levelId: level-4
sessions:
  - id: s1
    teamId: t1
    userId: dev
    date: 2024-03-01
    responses:
      - dimensionId: mission
        score: 3
        trend: improving
"""


def _request(**overrides):
    values = dict(
        team_id="team-a",
        user_id="m1",
        date=date(2024, 9, 2),
        responses=[HealthCheckResponse(dimension_id="mission", score=2)],
    )
    values.update(overrides)
    return SubmitHealthCheckRequest(**values)


@pytest.mark.asyncio
class TestInMemorySessionStore:
    """Reads and submissions."""

    async def test_team_sessions_with_period(self, org_store):
        all_sessions = await org_store.get_team_sessions("team-a")
        second_half = await org_store.get_team_sessions("team-a", "2023 - 2nd Half")

        assert [s.id for s in all_sessions] == ["s0", "s1", "s2"]
        assert [s.id for s in second_half] == ["s0", "s1", "s2"]
        assert await org_store.get_team_sessions("team-a", "2024 - 1st Half") == []

    async def test_get_team(self, org_store):
        team = await org_store.get_team("team-b")
        assert team.name == "Bravo"

        with pytest.raises(NotFound):
            await org_store.get_team("ghost")

    async def test_user_sessions(self, org_store):
        sessions = await org_store.get_user_sessions("m1")
        assert sorted(s.id for s in sessions) == ["s0", "s1"]

    async def test_submit_derives_id_and_period(self, org_store):
        session = await org_store.submit_session(_request())

        assert session.id
        assert session.assessment_period == "2024 - 1st Half"
        assert session in org_store.sessions
        assert len(await org_store.get_team_sessions("team-a")) == 4

    async def test_submit_keeps_given_id(self, org_store):
        session = await org_store.submit_session(_request(id="fixed"))
        assert session.id == "fixed"

        with pytest.raises(StoreError, match="already exists"):
            await org_store.submit_session(_request(id="fixed"))

    async def test_submit_unknown_team(self, org_store):
        with pytest.raises(NotFound):
            await org_store.submit_session(_request(team_id="ghost"))

    @pytest.mark.parametrize("responses, message", [
        ([], "at least one response"),
        ([HealthCheckResponse(dimension_id="vibes", score=2)], "Unknown or inactive"),
        (
            [HealthCheckResponse(dimension_id="mission", score=2), HealthCheckResponse(dimension_id="mission", score=3)],
            "Duplicate",
        ),
    ])
    async def test_submit_rejects_invalid_responses(self, org_store, responses, message):
        with pytest.raises(SubmissionError, match=message):
            await org_store.submit_session(_request(responses=responses))

        assert len(org_store.sessions) == 5

    async def test_dimensions_and_organization(self, org_store):
        dimensions = await org_store.get_dimensions()
        config = await org_store.get_organization_config()

        assert len(dimensions) == 11
        assert config.team_member_level_id == "level-5"


class TestSnapshots:
    """Loading YAML and JSON snapshot files."""

    def test_from_dict_rejects_non_mapping(self):
        with pytest.raises(StoreError):
            InMemorySessionStore.from_dict(["not", "a", "mapping"])

    @pytest.mark.asyncio
    async def test_load_yaml(self, tmp_path):
        path = tmp_path / "org.yaml"
        path.write_text(SNAPSHOT_YAML, encoding="utf-8")

        store = load_snapshot(path)

        users = await store.list_users()
        team = await store.get_team("t1")
        sessions = await store.get_team_sessions("t1")

        assert {u.id for u in users} == {"lead", "dev"}
        assert team.team_lead_id == "lead"
        assert sessions[0].date == date(2024, 3, 1)
        assert sessions[0].assessment_period == "2023 - 2nd Half"

    @pytest.mark.asyncio
    async def test_load_json_with_custom_dimensions(self, tmp_path):
        path = tmp_path / "org.json"
        path.write_text(json.dumps({
            "dimensions": [
                {"id": "focus", "name": "Focus"},
                {"id": "retired", "name": "Retired", "isActive": False},
            ],
            "users": [{"id": "u1", "hierarchyLevelId": "level-5"}],
            "teams": [{"id": "t1", "name": "One", "members": ["u1"]}],
            "sessions": [],
        }), encoding="utf-8")

        store = load_snapshot(path)

        assert [d.id for d in await store.get_dimensions()] == ["focus"]

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_snapshot(tmp_path / "missing.yaml")

    def test_invalid_records(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("teams:\n  - id: t1\n    name: One\n    cadence: daily\n", encoding="utf-8")

        with pytest.raises(ValidationError):
            load_snapshot(path)

"""
Shared fixtures: a small deterministic organization.

    vp (VP)
    └── director (Director)
        ├── mgr1 (Manager)          supervises team-a, team-b
        │   └── lead1 (Team Lead)   supervises team-a
        │       ├── m1, m2 (Team Member, on team-a)
        └── mgr2 (Manager)          supervises team-c (no sessions)
            └── m3 (Team Member, on team-c)

Plus an administrator without a level and a user whose level is unknown.
"""

from datetime import date
from typing import Dict, Optional

import pytest

from squad_health.models import HealthCheckSession, SupervisorLink, Team, User
from squad_health.store import InMemorySessionStore


def build_session(
    session_id: str,
    team_id: str,
    user_id: str,
    day: date,
    scores: Dict[str, int],
    trend: str = "stable",
    completed: bool = True,
    assessment_period: Optional[str] = None,
) -> HealthCheckSession:
    return HealthCheckSession(
        id=session_id,
        team_id=team_id,
        user_id=user_id,
        date=day,
        assessment_period=assessment_period,
        responses=[
            {"dimensionId": dimension_id, "score": score, "trend": trend}
            for dimension_id, score in scores.items()
        ],
        completed=completed,
    )


@pytest.fixture
def make_session():
    """Factory for sessions with one response per given dimension."""
    return build_session


@pytest.fixture
def org_users():
    return [
        User(id="vp", name="Vera Park", hierarchy_level_id="level-1"),
        User(id="director", name="Dana Ruiz", hierarchy_level_id="level-2", reports_to="vp"),
        User(id="mgr1", name="Milo Chen", hierarchy_level_id="level-3", reports_to="director"),
        User(id="mgr2", name="Mara Osei", hierarchy_level_id="level-3", reports_to="director"),
        User(id="lead1", name="Lee Novak", hierarchy_level_id="level-4", reports_to="mgr1", team_ids={"team-a"}),
        User(id="m1", name="Ana Silva", hierarchy_level_id="level-5", reports_to="lead1", team_ids={"team-a"}),
        User(id="m2", name="Ben Ito", hierarchy_level_id="level-5", reports_to="lead1", team_ids={"team-a"}),
        User(id="m3", name="Cy Moreau", hierarchy_level_id="level-5", reports_to="mgr2", team_ids={"team-c"}),
        User(id="admin", name="Root Admin", is_admin=True),
        User(id="orphan", name="Lost Level", hierarchy_level_id="level-x"),
    ]


@pytest.fixture
def org_teams():
    return [
        Team(
            id="team-a",
            name="Alpha",
            members={"lead1", "m1", "m2"},
            supervisor_chain=[
                SupervisorLink(user_id="lead1", level_id="level-4"),
                SupervisorLink(user_id="mgr1", level_id="level-3"),
                SupervisorLink(user_id="director", level_id="level-2"),
                SupervisorLink(user_id="vp", level_id="level-1"),
            ],
        ),
        Team(
            id="team-b",
            name="Bravo",
            members={"x1", "x2"},
            supervisor_chain=[
                SupervisorLink(user_id="mgr1", level_id="level-3"),
                SupervisorLink(user_id="director", level_id="level-2"),
                SupervisorLink(user_id="vp", level_id="level-1"),
            ],
        ),
        Team(
            id="team-c",
            name="Charlie",
            members={"m3"},
            supervisor_chain=[
                SupervisorLink(user_id="mgr2", level_id="level-3"),
                SupervisorLink(user_id="director", level_id="level-2"),
                SupervisorLink(user_id="vp", level_id="level-1"),
            ],
        ),
    ]


@pytest.fixture
def org_sessions():
    """
    team-a: latest batch on 2024-03-01 (s1 improving, s2 declining), older s0
    team-b: one completed session, one incomplete one that must be ignored
    team-c: nothing
    """
    return [
        build_session("s0", "team-a", "m1", date(2024, 1, 10), {"mission": 3, "speed": 3}),
        build_session("s1", "team-a", "m1", date(2024, 3, 1), {"mission": 1, "speed": 2}, trend="improving"),
        build_session("s2", "team-a", "m2", date(2024, 3, 1), {"mission": 3, "speed": 3}, trend="declining"),
        build_session("s3", "team-b", "x1", date(2024, 2, 15), {"mission": 2, "speed": 2}),
        build_session("s4", "team-b", "x2", date(2024, 2, 20), {"mission": 1}, completed=False),
    ]


@pytest.fixture
def org_store(org_users, org_teams, org_sessions):
    return InMemorySessionStore(users=org_users, teams=org_teams, sessions=org_sessions)

"""
In-memory session store backed by a snapshot file.

Snapshot files are YAML or JSON documents of the form:

    organization: {...}      # optional, defaults to the standard five levels
    dimensions: [...]        # optional, defaults to the standard dimensions
    users: [...]
    teams: [...]
    sessions: [...]

Records use the backend's camelCase field names (snake_case also accepted).
"""

import asyncio
import json
import logging
import uuid
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

import yaml

from ..aggregation.dimensions import DEFAULT_DIMENSIONS, DimensionRegistry
from ..errors import NotFound
from ..models.organization import DEFAULT_ORG_CONFIG, OrganizationConfig
from ..models.records import Dimension, HealthCheckSession, SubmitHealthCheckRequest, Team, User
from .base import SessionStore, StoreError, validate_submission


logger = logging.getLogger(__name__)


class InMemorySessionStore(SessionStore):
    """
    Session store holding everything in process memory.

    Sessions are append-only; readers always get a copy of the current list,
    so a read never observes a half-applied submission.
    """

    def __init__(
        self,
        users: Iterable[User] = (),
        teams: Iterable[Team] = (),
        sessions: Iterable[HealthCheckSession] = (),
        registry: Optional[DimensionRegistry] = None,
        org_config: Optional[OrganizationConfig] = None,
    ):
        self.registry = registry or DEFAULT_DIMENSIONS
        self.org_config = org_config or DEFAULT_ORG_CONFIG
        self._users: Dict[str, User] = {user.id: user for user in users}
        self._teams: Dict[str, Team] = {team.id: team for team in teams}
        self._sessions: List[HealthCheckSession] = list(sessions)
        self._lock = asyncio.Lock()

    async def get_team_sessions(self, team_id: str, period: Optional[str] = None) -> List[HealthCheckSession]:
        return [
            session for session in self._sessions
            if session.team_id == team_id and (period is None or session.assessment_period == period)
        ]

    async def get_dimensions(self) -> List[Dimension]:
        return self.registry.list_active_dimensions()

    async def submit_session(self, request: SubmitHealthCheckRequest) -> HealthCheckSession:
        """Validate and append a session, deriving its id and period when absent."""
        validate_submission(request, self.registry.list_active_dimensions())

        if request.team_id not in self._teams:
            raise NotFound("team", request.team_id)

        session = HealthCheckSession(
            id=request.id or str(uuid.uuid4()),
            team_id=request.team_id,
            user_id=request.user_id,
            date=request.date,
            assessment_period=request.assessment_period,
            responses=tuple(request.responses),
            completed=request.completed,
        )

        async with self._lock:
            if any(existing.id == session.id for existing in self._sessions):
                raise StoreError(f"Session {session.id} already exists")
            self._sessions = self._sessions + [session]

        logger.info(f"Stored session {session.id} for team {session.team_id} ({session.assessment_period})")
        return session

    async def list_users(self) -> List[User]:
        return list(self._users.values())

    async def list_teams(self) -> List[Team]:
        return list(self._teams.values())

    async def get_team(self, team_id: str) -> Team:
        team = self._teams.get(team_id)
        if team is None:
            raise NotFound("team", team_id)
        return team

    async def get_organization_config(self) -> OrganizationConfig:
        return self.org_config

    async def get_user_sessions(self, user_id: str) -> List[HealthCheckSession]:
        return [session for session in self._sessions if session.user_id == user_id]

    @property
    def sessions(self) -> List[HealthCheckSession]:
        return list(self._sessions)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InMemorySessionStore":
        """Build a store from a parsed snapshot document."""
        if not isinstance(data, dict):
            raise StoreError("Snapshot must be a mapping with users, teams and sessions")

        organization = data.get("organization")
        dimensions = data.get("dimensions")

        return cls(
            users=[User.model_validate(item) for item in data.get("users") or []],
            teams=[Team.model_validate(item) for item in data.get("teams") or []],
            sessions=[HealthCheckSession.model_validate(item) for item in data.get("sessions") or []],
            registry=DimensionRegistry(Dimension.model_validate(item) for item in dimensions) if dimensions else None,
            org_config=OrganizationConfig.model_validate(organization) if organization else None,
        )


def load_snapshot(path: Union[str, Path]) -> InMemorySessionStore:
    """Load a YAML or JSON snapshot file into an InMemorySessionStore."""
    snapshot_path = Path(path)
    if not snapshot_path.exists():
        raise FileNotFoundError(f"Snapshot file not found: {snapshot_path}")

    with open(snapshot_path, 'r', encoding='utf-8') as f:
        content = f.read()

    if snapshot_path.suffix == ".json":
        data = json.loads(content)
    else:
        data = yaml.safe_load(content)

    store = InMemorySessionStore.from_dict(data)
    logger.info(
        f"Loaded snapshot {snapshot_path}: {len(store._users)} users, "
        f"{len(store._teams)} teams, {len(store._sessions)} sessions"
    )
    return store

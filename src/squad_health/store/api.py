"""
Session store backed by the health-check REST API.

Async aiohttp client with retry and exponential backoff on transport errors
and 5xx responses. Backend payloads are normalized into the frozen record
models before they reach the aggregation engine.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

import aiohttp

from ..config import BackendConfig
from ..errors import NotFound
from ..models.organization import HierarchyLevel, OrganizationConfig
from ..models.records import Dimension, HealthCheckSession, SubmitHealthCheckRequest, Team, User
from .base import HealthCheckAPIError, SessionStore, validate_submission
from .cache import TeamInfoCache


logger = logging.getLogger(__name__)


def user_from_payload(data: Dict[str, Any]) -> User:
    """Map an admin user record (fullName, hierarchyLevel) onto User."""
    data = dict(data)
    if "name" not in data and "fullName" in data:
        data["name"] = data.pop("fullName")
    if "hierarchyLevelId" not in data and "hierarchyLevel" in data:
        data["hierarchyLevelId"] = data.pop("hierarchyLevel")
    if data.get("teamIds") is None:
        data["teamIds"] = []
    return User.model_validate(data)


def team_from_payload(data: Dict[str, Any]) -> Team:
    """
    Map a team record onto Team.

    Team info lists members as objects; admin listings only carry the team
    lead, which becomes a one-link supervisor chain.
    """
    data = dict(data)
    members = data.get("members")
    if members:
        data["members"] = [m["id"] if isinstance(m, dict) else m for m in members]
    else:
        data["members"] = []

    if not data.get("supervisorChain") and data.get("teamLeadId"):
        data["supervisorChain"] = [{"userId": data["teamLeadId"], "levelId": data.get("teamLeadLevelId", "")}]
    return Team.model_validate(data)


def organization_from_levels(levels: List[Dict[str, Any]]) -> OrganizationConfig:
    """Build an OrganizationConfig from /admin/hierarchy-levels; the most junior level holds team members."""
    parsed = []
    for item in levels:
        permissions = dict(item.get("permissions") or {})
        if "canViewReports" not in permissions and "canViewAnalytics" in permissions:
            permissions["canViewReports"] = permissions["canViewAnalytics"]
        parsed.append(HierarchyLevel.model_validate({**item, "permissions": permissions}))

    if not parsed:
        raise HealthCheckAPIError("Backend returned no hierarchy levels")

    return OrganizationConfig(
        hierarchy_levels=tuple(parsed),
        team_member_level_id=max(parsed, key=lambda level: level.rank).id,
    )


class APISessionStore(SessionStore):
    """SessionStore talking to the health-check backend over HTTP."""

    def __init__(self, config: Optional[BackendConfig] = None, team_cache: Optional[TeamInfoCache] = None):
        self.config = config or BackendConfig()
        self.team_cache = team_cache or TeamInfoCache(ttl=self.config.team_cache_ttl)
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self) -> "APISessionStore":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers={"Content-Type": "application/json"},
                timeout=aiohttp.ClientTimeout(total=self.config.timeout),
            )
        return self._session

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, str]] = None,
        json_body: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Make a backend call with retry logic and return the decoded JSON body."""
        url = f"{self.config.base_url}{path}"

        for attempt in range(self.config.max_retries + 1):
            try:
                session = self._get_session()
                async with session.request(method, url, params=params, json=json_body) as response:
                    if response.status >= 400:
                        try:
                            api_error = await response.json(content_type=None)
                        except ValueError:
                            api_error = await response.text()

                        message = api_error
                        if isinstance(api_error, dict):
                            message = api_error.get("message") or api_error.get("error")
                        error = HealthCheckAPIError(
                            f"{method} {path} failed with {response.status}: {message}",
                            status_code=response.status,
                            api_error=api_error,
                        )
                        if response.status < 500 or attempt == self.config.max_retries:
                            raise error
                        logger.warning(f"Backend error {response.status} on {method} {path}, attempt {attempt + 1}")
                    else:
                        return await response.json(content_type=None)

            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                if attempt == self.config.max_retries:
                    logger.error(f"{method} {path} failed after {self.config.max_retries} retries: {e}")
                    raise HealthCheckAPIError(f"{method} {path} failed after {self.config.max_retries} retries: {e}")
                logger.warning(f"Transport error on {method} {path}, attempt {attempt + 1}: {e}")

            await asyncio.sleep(self.config.retry_delay * (2 ** attempt))

    async def health(self) -> bool:
        """True when the backend's /health endpoint answers."""
        try:
            await self._request("GET", "/health")
            return True
        except HealthCheckAPIError as e:
            logger.warning(f"Backend health check failed: {e}")
            return False

    async def get_team_sessions(self, team_id: str, period: Optional[str] = None) -> List[HealthCheckSession]:
        params = {"assessmentPeriod": period} if period else None
        data = await self._request("GET", f"/api/v1/health-checks/team/{team_id}", params=params)
        return [HealthCheckSession.model_validate(item) for item in data.get("sessions") or []]

    async def get_dimensions(self) -> List[Dimension]:
        data = await self._request("GET", "/api/v1/health-dimensions")
        dimensions = [Dimension.model_validate(item) for item in data.get("dimensions") or []]
        return [dimension for dimension in dimensions if dimension.is_active]

    async def submit_session(self, request: SubmitHealthCheckRequest) -> HealthCheckSession:
        validate_submission(request, await self.get_dimensions())
        data = await self._request("POST", "/api/v1/health-checks", json_body=request.to_payload())
        session = HealthCheckSession.model_validate(data)
        await self.team_cache.invalidate_team(session.team_id)
        logger.info(f"Submitted session {session.id} for team {session.team_id}")
        return session

    async def list_users(self) -> List[User]:
        data = await self._request("GET", "/api/v1/admin/users")
        return [user_from_payload(item) for item in data.get("users") or []]

    async def list_teams(self) -> List[Team]:
        data = await self._request("GET", "/api/v1/admin/teams")
        return [team_from_payload(item) for item in data.get("teams") or []]

    async def get_team(self, team_id: str) -> Team:
        cached = await self.team_cache.get_team(team_id)
        if cached is not None:
            return cached

        try:
            data = await self._request("GET", f"/api/v1/teams/{team_id}/info")
        except HealthCheckAPIError as e:
            if e.status_code == 404:
                raise NotFound("team", team_id) from e
            raise

        team = team_from_payload(data)
        await self.team_cache.set_team(team)
        return team

    async def get_organization_config(self) -> OrganizationConfig:
        data = await self._request("GET", "/api/v1/admin/hierarchy-levels")
        return organization_from_levels(data.get("levels") or [])

    async def get_user_sessions(self, user_id: str) -> List[HealthCheckSession]:
        data = await self._request("GET", f"/api/v1/users/{user_id}/survey-history")
        return [
            HealthCheckSession.model_validate({
                **entry,
                "id": entry.get("sessionId") or entry.get("id"),
                "userId": user_id,
            })
            for entry in data.get("surveyHistory") or []
        ]

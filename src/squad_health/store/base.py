"""
Session store interface.

The aggregation engine never talks to storage directly. The dashboard service
reads snapshots through a SessionStore and passes them into the pure
aggregation functions.
"""

from abc import ABC, abstractmethod
from typing import Any, Iterable, List, Optional

from ..errors import HealthCheckError, SubmissionError
from ..models.organization import OrganizationConfig
from ..models.records import Dimension, HealthCheckSession, SubmitHealthCheckRequest, Team, User


class StoreError(HealthCheckError):
    """Raised when the session store cannot serve a request."""
    pass


class HealthCheckAPIError(StoreError):
    """Raised for error responses from the health-check backend."""

    def __init__(self, message: str, status_code: Optional[int] = None, api_error: Optional[Any] = None):
        self.status_code = status_code
        self.api_error = api_error
        super().__init__(message)


class SessionStore(ABC):
    """Abstract async interface over persisted sessions and organization data."""

    @abstractmethod
    async def get_team_sessions(self, team_id: str, period: Optional[str] = None) -> List[HealthCheckSession]:
        """Sessions for a team, optionally restricted to an assessment period."""
        pass

    @abstractmethod
    async def get_dimensions(self) -> List[Dimension]:
        """Active health dimensions."""
        pass

    @abstractmethod
    async def submit_session(self, request: SubmitHealthCheckRequest) -> HealthCheckSession:
        """Persist a new session and return it as stored."""
        pass

    @abstractmethod
    async def list_users(self) -> List[User]:
        pass

    @abstractmethod
    async def list_teams(self) -> List[Team]:
        pass

    @abstractmethod
    async def get_team(self, team_id: str) -> Team:
        """Team info; raises NotFound for unknown ids."""
        pass

    @abstractmethod
    async def get_organization_config(self) -> OrganizationConfig:
        pass

    @abstractmethod
    async def get_user_sessions(self, user_id: str) -> List[HealthCheckSession]:
        """Every session submitted by a user."""
        pass

    async def close(self) -> None:
        """Release any held resources."""
        pass


def validate_submission(request: SubmitHealthCheckRequest, active: Iterable[Dimension]) -> None:
    """
    Check a submission against the active dimensions.

    Raises:
        SubmissionError: empty submission, unknown or inactive dimension ids,
            or more than one response for the same dimension
    """
    active_ids = {dimension.id for dimension in active}

    if not request.responses:
        raise SubmissionError("A health check must contain at least one response")

    seen = set()
    for response in request.responses:
        if response.dimension_id not in active_ids:
            raise SubmissionError(f"Unknown or inactive dimension: {response.dimension_id}")
        if response.dimension_id in seen:
            raise SubmissionError(f"Duplicate response for dimension: {response.dimension_id}")
        seen.add(response.dimension_id)

"""
Record models mapping to the health-check backend's JSON payloads.

These Pydantic models mirror the backend resources:
- /api/v1/health-dimensions
- /api/v1/health-checks (sessions and their responses)
- /api/v1/admin/users
- /api/v1/admin/teams

The backend speaks camelCase; every model accepts either the camelCase
alias or the snake_case field name. Records are frozen so a single
aggregation pass can never mutate its inputs.
"""

from datetime import date, datetime
from enum import Enum, IntEnum
from typing import FrozenSet, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from ..periods import get_assessment_period, to_calendar_date


RECORD_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    frozen=True,
)


def coerce_calendar_date(value):
    """Truncate datetimes and ISO timestamps to their calendar date."""
    if isinstance(value, (datetime, str)):
        return to_calendar_date(value)
    return value


class HealthScore(IntEnum):
    """Red/Yellow/Green answer for a dimension."""
    RED = 1
    YELLOW = 2
    GREEN = 3


class HealthStatus(str, Enum):
    """Red/Yellow/Green status for an averaged score."""
    GREEN = "green"
    YELLOW = "yellow"
    RED = "red"


class TrendDirection(str, Enum):
    """Trend direction indicators."""
    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"
    UNKNOWN = "unknown"


class Cadence(str, Enum):
    """How often a team runs its health check."""
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"


class Dimension(BaseModel):
    """Maps to a health dimension returned by /api/v1/health-dimensions."""
    model_config = RECORD_CONFIG

    id: str
    name: str
    description: str = ""
    good_description: str = ""
    bad_description: str = ""
    is_active: bool = True
    weight: float = 1.0

    @model_validator(mode="after")
    def validate_weight(self):
        """Active dimensions need a positive weight to take part in averages."""
        if self.is_active and self.weight <= 0:
            raise ValueError(f"Active dimension {self.id} must have a positive weight")
        return self


class User(BaseModel):
    """Maps to a user returned by /api/v1/admin/users."""
    model_config = RECORD_CONFIG

    id: str
    username: str = ""
    name: str = ""
    hierarchy_level_id: Optional[str] = None
    reports_to: Optional[str] = None
    team_ids: FrozenSet[str] = frozenset()
    is_admin: bool = False

    @field_validator("reports_to", "hierarchy_level_id", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        """The backend sends empty strings for unset references."""
        if v == "":
            return None
        return v

    @model_validator(mode="after")
    def validate_not_self_reporting(self):
        if self.reports_to is not None and self.reports_to == self.id:
            raise ValueError(f"User {self.id} cannot report to themselves")
        return self

    @property
    def display_name(self) -> str:
        return self.name or self.username or self.id


class SupervisorLink(BaseModel):
    """One link in a team's supervisor chain."""
    model_config = RECORD_CONFIG

    user_id: str
    level_id: str


class Team(BaseModel):
    """Maps to a team returned by /api/v1/admin/teams."""
    model_config = RECORD_CONFIG

    id: str
    name: str
    cadence: Cadence = Cadence.BIWEEKLY
    next_check_date: Optional[date] = None
    members: FrozenSet[str] = frozenset()
    supervisor_chain: Tuple[SupervisorLink, ...] = ()
    department: Optional[str] = None
    division: Optional[str] = None
    tags: Tuple[str, ...] = ()

    @field_validator("next_check_date", mode="before")
    @classmethod
    def parse_next_check_date(cls, v):
        if v == "":
            return None
        return coerce_calendar_date(v)

    @property
    def member_count(self) -> int:
        return len(self.members)

    @property
    def supervisor_ids(self) -> List[str]:
        """Supervisor user ids from team lead upward."""
        return [link.user_id for link in self.supervisor_chain]

    def is_supervised_by(self, user_id: str) -> bool:
        return any(link.user_id == user_id for link in self.supervisor_chain)

    @property
    def team_lead_id(self) -> Optional[str]:
        return self.supervisor_chain[0].user_id if self.supervisor_chain else None


class HealthCheckResponse(BaseModel):
    """A single dimension answer inside a session."""
    model_config = RECORD_CONFIG

    dimension_id: str
    score: HealthScore
    trend: TrendDirection = TrendDirection.STABLE
    comment: Optional[str] = None

    @field_validator("trend")
    @classmethod
    def validate_trend(cls, v):
        if v == TrendDirection.UNKNOWN:
            raise ValueError("trend must be improving, stable or declining")
        return v

    @field_validator("comment", mode="before")
    @classmethod
    def blank_comment_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class HealthCheckSession(BaseModel):
    """Maps to a session returned by /api/v1/health-checks."""
    model_config = RECORD_CONFIG

    id: str
    team_id: str
    user_id: str
    date: date
    assessment_period: Optional[str] = None
    responses: Tuple[HealthCheckResponse, ...] = ()
    completed: bool = True

    @field_validator("date", mode="before")
    @classmethod
    def truncate_to_calendar_date(cls, v):
        return coerce_calendar_date(v)

    @model_validator(mode="after")
    def derive_assessment_period(self):
        """Sessions stored before periods existed get one derived from their date."""
        if not self.assessment_period:
            object.__setattr__(self, "assessment_period", get_assessment_period(self.date))
        return self

    def responses_for(self, dimension_id: str) -> List[HealthCheckResponse]:
        return [r for r in self.responses if r.dimension_id == dimension_id]


class SubmitHealthCheckRequest(BaseModel):
    """Body of POST /api/v1/health-checks."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: Optional[str] = None
    team_id: str
    user_id: str
    date: date
    assessment_period: Optional[str] = None
    responses: List[HealthCheckResponse] = Field(default_factory=list)
    completed: bool = True

    @field_validator("date", mode="before")
    @classmethod
    def truncate_to_calendar_date(cls, v):
        return coerce_calendar_date(v)

    def to_payload(self) -> dict:
        """JSON body in the backend's camelCase shape."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

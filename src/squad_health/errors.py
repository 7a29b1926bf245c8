"""Exceptions raised by the aggregation core and the dashboard service."""

from typing import Sequence


class HealthCheckError(Exception):
    """Base exception for squad health errors."""
    pass


class NotFound(HealthCheckError):
    """Raised when a user, team, level or dimension id cannot be resolved."""

    def __init__(self, kind: str, identifier: str):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind} not found: {identifier}")


class HierarchyCycleDetected(HealthCheckError):
    """Raised when `reports_to` edges loop back on themselves."""

    def __init__(self, path: Sequence[str]):
        self.path = list(path)
        super().__init__(f"Reporting cycle detected: {' -> '.join(self.path)}")


class HierarchyIntegrityError(HealthCheckError):
    """Raised when a user reports to someone who is not more senior."""

    def __init__(self, user_id: str, manager_id: str, user_rank: int, manager_rank: int):
        self.user_id = user_id
        self.manager_id = manager_id
        super().__init__(
            f"User {user_id} (rank {user_rank}) reports to {manager_id} (rank {manager_rank}); "
            f"a manager must hold a more senior level"
        )


class PermissionDenied(HealthCheckError):
    """Raised when a user asks for data outside their visible teams."""
    pass


class LevelInUseError(HealthCheckError):
    """Raised when a hierarchy level cannot be removed."""
    pass


class SubmissionError(HealthCheckError):
    """Raised when a health check submission fails validation."""
    pass

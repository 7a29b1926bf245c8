"""
Session store layer: the external collaborator holding sessions, users,
teams and organization configuration.
"""

from .api import APISessionStore
from .base import HealthCheckAPIError, SessionStore, StoreError, validate_submission
from .cache import InMemoryCache, TeamInfoCache
from .memory import InMemorySessionStore, load_snapshot

__all__ = [
    "APISessionStore",
    "HealthCheckAPIError",
    "InMemoryCache",
    "InMemorySessionStore",
    "SessionStore",
    "StoreError",
    "TeamInfoCache",
    "load_snapshot",
    "validate_submission",
]

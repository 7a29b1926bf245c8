"""
Orchestration module for dashboard reads and health check submissions.
"""

from .dashboard import HealthDashboard

__all__ = ["HealthDashboard"]

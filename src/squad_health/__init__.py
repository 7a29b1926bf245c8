"""
Squad Health Check aggregation

Rolls individual red/yellow/green health-check submissions up into team
summaries and organization-wide dashboards, with permission-filtered
visibility over the reporting hierarchy.
"""

__version__ = "0.1.0"

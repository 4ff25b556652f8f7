"""
Application services for RoadWatch.
"""

from .reports import ReportService
from .jobs import JobScheduler

__all__ = ["ReportService", "JobScheduler"]

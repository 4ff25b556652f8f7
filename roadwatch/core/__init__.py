"""
Core domain models and pure functions for RoadWatch.

This module contains the domain models and pure business logic
that are independent of external I/O and infrastructure concerns.
"""

from .models import (
    Coordinate, Detection, ReportRecord, CandidateReport, NewReport,
    Zone, Severity, ReportStatus, QualitativePosition, QualitativeDistance,
)
from .zoning import classify, MUNICIPAL_CENTER
from .estimator import estimate
from .normalize import to_detections

__all__ = [
    "Coordinate", "Detection", "ReportRecord", "CandidateReport", "NewReport",
    "Zone", "Severity", "ReportStatus", "QualitativePosition", "QualitativeDistance",
    "classify", "MUNICIPAL_CENTER", "estimate", "to_detections",
]

"""
Detection → report pipeline for RoadWatch.

Detections found in one photo are turned into candidate reports that the
user accepts or discards one by one. Nothing here persists anything.
"""

import uuid
from datetime import datetime, timezone
from typing import Iterable, List, Optional
from roadwatch.common.geo import validate_coordinates
from .estimator import estimate
from .models import (
    CandidateReport, Coordinate, Detection, NewReport, ReportRecord, ReportStatus
)
from .zoning import MUNICIPAL_CENTER, PointLike, classify

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)

def propose(detections: Iterable[Detection],
            base: Coordinate,
            heading: float = 0.0,
            reference: PointLike = MUNICIPAL_CENTER) -> List[CandidateReport]:
    """
    Detection마다 좌표와 구역을 계산해 후보를 만듭니다.
    
    모든 후보는 같은 촬영 위치(base)를 기준으로 계산됩니다.
    """
    candidates = []
    for detection in detections:
        location = estimate(base, detection.position, detection.distance, heading)
        candidates.append(CandidateReport(
            candidate_id=uuid.uuid4().hex,
            detection=detection,
            base=base,
            heading=heading,
            location=location,
            zone=classify(location, reference),
        ))
    return candidates

def confirm(candidate: CandidateReport,
            street: str,
            *,
            photo_ref: Optional[str] = None,
            report_id: Optional[str] = None,
            now: Optional[datetime] = None) -> ReportRecord:
    """
    사용자가 승인한 후보를 신고 레코드로 만듭니다.
    
    Raises:
        ValueError: 빈 도로명 또는 범위를 벗어난 좌표
    """
    street = street.strip()
    if not street:
        raise ValueError("street is required")
    if not validate_coordinates(candidate.location.lat, candidate.location.lng):
        raise ValueError(f"estimated location out of range: {candidate.location.as_tuple()}")
    now = now or _utcnow()
    return ReportRecord(
        id=report_id or uuid.uuid4().hex,
        location=candidate.location,
        zone=candidate.zone,
        street=street,
        description=candidate.detection.description,
        severity=candidate.detection.severity,
        photo_ref=photo_ref,
        auto_detected=True,
        detection_confidence=candidate.detection.confidence,
        created_at=now,
        updated_at=now,
        status=ReportStatus.PENDING,
    )

def build_manual_report(new_report: NewReport,
                        *,
                        reference: PointLike = MUNICIPAL_CENTER,
                        photo_ref: Optional[str] = None,
                        report_id: Optional[str] = None,
                        now: Optional[datetime] = None) -> ReportRecord:
    """수동 제출된 신고를 레코드로 만듭니다."""
    now = now or _utcnow()
    location = Coordinate(lat=new_report.lat, lng=new_report.lng)
    return ReportRecord(
        id=report_id or uuid.uuid4().hex,
        location=location,
        zone=classify(location, reference),
        street=new_report.street,
        description=new_report.description,
        severity=new_report.severity,
        photo_ref=photo_ref,
        auto_detected=False,
        created_at=now,
        updated_at=now,
        status=ReportStatus.PENDING,
    )

"""
탐지 → 후보 → 신고 파이프라인 테스트
"""

import pytest

from roadwatch.core.candidates import build_manual_report, confirm, propose
from roadwatch.core.estimator import estimate
from roadwatch.core.models import (
    Coordinate, Detection, NewReport, QualitativeDistance, QualitativePosition,
    ReportStatus, Severity, Zone
)
from roadwatch.core.zoning import classify

BASE = Coordinate(lat=16.3219, lng=-96.5958)


def _detection(position, distance, confidence=0.5, severity=Severity.MEDIUM):
    return Detection(severity=severity, position=position, distance=distance,
                     confidence=confidence, description="bache")


class TestPropose:
    """propose 테스트"""

    def test_each_detection_uses_same_base(self):
        detections = [
            _detection(QualitativePosition.LEFT, QualitativeDistance.FAR),
            _detection(QualitativePosition.LEFT, QualitativeDistance.FAR),
        ]
        first, second = propose(detections, BASE, heading=15)
        # 오프셋이 누적되지 않음
        assert first.location == second.location
        assert first.location == estimate(BASE, QualitativePosition.LEFT, QualitativeDistance.FAR, 15)
        assert first.base == BASE and second.base == BASE

    def test_zone_from_estimated_location(self):
        [candidate] = propose([_detection(QualitativePosition.DOWN, QualitativeDistance.MEDIUM)], BASE)
        assert candidate.zone == classify(candidate.location)

    def test_candidate_ids_unique(self):
        detections = [_detection(p, QualitativeDistance.NEAR) for p in QualitativePosition]
        ids = {c.candidate_id for c in propose(detections, BASE)}
        assert len(ids) == len(detections)

    def test_empty(self):
        assert propose([], BASE) == []

    def test_reference_override(self):
        far_ref = Coordinate(lat=BASE.lat - 0.05, lng=BASE.lng)
        [candidate] = propose([_detection(QualitativePosition.CENTER, QualitativeDistance.NEAR)], BASE,
                              reference=far_ref)
        assert candidate.zone == Zone.NORTH


class TestConfirm:
    """confirm / build_manual_report 테스트"""

    def test_confirm_builds_auto_record(self, fixed_now):
        [candidate] = propose([_detection(QualitativePosition.RIGHT, QualitativeDistance.NEAR,
                                          confidence=0.91, severity=Severity.HIGH)], BASE)
        record = confirm(candidate, "Calle Juárez", photo_ref="baches/1_x.jpg", report_id="x", now=fixed_now)
        assert record.id == "x"
        assert record.auto_detected is True
        assert record.detection_confidence == 0.91
        assert record.severity == Severity.HIGH
        assert record.location == candidate.location
        assert record.zone == candidate.zone
        assert record.status == ReportStatus.PENDING
        assert record.created_at == fixed_now
        assert record.photo_ref == "baches/1_x.jpg"

    def test_confirm_strips_street(self):
        [candidate] = propose([_detection(QualitativePosition.CENTER, QualitativeDistance.NEAR)], BASE)
        assert confirm(candidate, "  Calle Juárez ").street == "Calle Juárez"

    def test_confirm_rejects_blank_street(self):
        [candidate] = propose([_detection(QualitativePosition.CENTER, QualitativeDistance.NEAR)], BASE)
        with pytest.raises(ValueError):
            confirm(candidate, "   ")

    def test_confirm_rejects_out_of_range_location(self):
        bad_base = Coordinate(lat=45.0, lng=500.0)
        [candidate] = propose([_detection(QualitativePosition.CENTER, QualitativeDistance.NEAR)], bad_base)
        with pytest.raises(ValueError):
            confirm(candidate, "Calle Juárez")

    def test_manual_report(self, fixed_now):
        payload = NewReport(street="Calle Hidalgo esquina con Morelos", lat=16.3350, lng=-96.5958,
                            severity=Severity.LOW, description="pequeño")
        record = build_manual_report(payload, now=fixed_now)
        assert record.zone == Zone.NORTH
        assert record.auto_detected is False
        assert record.detection_confidence is None
        assert record.location == Coordinate(lat=16.3350, lng=-96.5958)
        assert record.updated_at == fixed_now
        assert len(record.id) == 32

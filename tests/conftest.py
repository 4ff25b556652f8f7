"""
테스트 설정 및 픽스처

이 모듈은 pytest 설정과 공통 픽스처를 제공합니다.
"""

import os
import tempfile
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from roadwatch.core.models import (
    Coordinate, Detection, QualitativeDistance, QualitativePosition,
    ReportRecord, ReportStatus, Severity, Zone
)
from roadwatch.core.zoning import MUNICIPAL_CENTER, classify
from roadwatch.settings import Settings


@pytest.fixture
def temp_db_path():
    """임시 데이터베이스 파일 경로"""
    with tempfile.NamedTemporaryFile(suffix='.db', delete=False) as f:
        temp_path = f.name
    yield temp_path
    if os.path.exists(temp_path):
        os.unlink(temp_path)


@pytest.fixture
def photo_root(tmp_path):
    """임시 사진 저장 디렉터리"""
    return str(tmp_path / "photos")


@pytest.fixture
def sample_settings(temp_db_path, photo_root):
    """테스트용 설정"""
    settings = Settings()
    settings.observability.service_name = "test-service"
    settings.observability.build_version = "1.0.0"
    settings.observability.log_level = "INFO"
    settings.storage.db_path = temp_db_path
    settings.storage.photo_root = photo_root
    return settings


@pytest.fixture
def reference():
    """미아우아틀란 기준점"""
    return MUNICIPAL_CENTER


@pytest.fixture
def fixed_now():
    return datetime(2026, 10, 12, 15, 0, tzinfo=timezone.utc)


@pytest.fixture
def sample_detection():
    """테스트용 Detection"""
    return Detection(
        severity=Severity.HIGH,
        position=QualitativePosition.RIGHT,
        distance=QualitativeDistance.MEDIUM,
        confidence=0.87,
        description="bache profundo junto a la banqueta",
    )


@pytest.fixture
def make_record(fixed_now):
    """테스트용 ReportRecord 생성기"""
    counter = {"n": 0}

    def _make(lat=16.3219, lng=-96.5958, severity=Severity.MEDIUM,
              status=ReportStatus.PENDING, age_days=0, photo_ref=None,
              auto_detected=False, confidence=None):
        counter["n"] += 1
        location = Coordinate(lat=lat, lng=lng)
        created = fixed_now - timedelta(days=age_days, minutes=counter["n"])
        return ReportRecord(
            id=f"r{counter['n']}",
            location=location,
            zone=classify(location),
            street=f"Calle {counter['n']}",
            description="bache",
            severity=severity,
            photo_ref=photo_ref,
            auto_detected=auto_detected,
            detection_confidence=confidence,
            created_at=created,
            updated_at=created,
            status=status,
        )

    return _make


@pytest.fixture
def mock_inference():
    """테스트용 추론 포트"""
    inference = AsyncMock()
    inference.analyze.return_value = {
        "detections": [
            {"severity": "alta", "position": "izquierda", "distance": "cerca",
             "confidence": 0.9, "description": "bache grande"},
            {"severity": "baja", "position": "derecha", "distance": "lejos",
             "confidence": 0.4, "description": "grieta"},
        ]
    }
    return inference


@pytest.fixture
def mock_notifier():
    """테스트용 알림 포트"""
    return AsyncMock()


def pytest_collection_modifyitems(config, items):
    """테스트 아이템 수정"""
    for item in items:
        if "performance" in item.name or "stress" in item.name:
            item.add_marker(pytest.mark.slow)
        if "integration" in item.name:
            item.add_marker(pytest.mark.integration)

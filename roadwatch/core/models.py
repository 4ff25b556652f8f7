"""
Core domain models for RoadWatch.

This module defines the closed label sets and the report records
using Pydantic v2 for type safety and validation.
"""

import math
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Tuple
from pydantic import BaseModel, Field, field_validator, model_validator
from roadwatch.common.geo import validate_coordinates


class Zone(str, Enum):
    """기준점 대비 구역"""
    CENTER = "Centro"
    NORTH = "Norte"
    SOUTH = "Sur"
    EAST = "Este"
    WEST = "Oeste"
    PERIPHERY = "Periferia"


class Severity(str, Enum):
    """심각도 (긴급도 오름차순)"""
    LOW = "baja"
    MEDIUM = "media"
    HIGH = "alta"


# 심각도 순서 정의 (낮음 -> 높음)
SEVERITY_ORDER = {
    Severity.LOW: 0,
    Severity.MEDIUM: 1,
    Severity.HIGH: 2,
}


class ReportStatus(str, Enum):
    """신고 처리 상태"""
    PENDING = "pendiente"
    UNDER_REVIEW = "en_revision"
    RESOLVED = "resuelto"


class QualitativePosition(str, Enum):
    """사진 내 상대 위치"""
    CENTER = "centro"
    LEFT = "izquierda"
    RIGHT = "derecha"
    UP = "arriba"
    DOWN = "abajo"


class QualitativeDistance(str, Enum):
    """사진 내 상대 거리"""
    NEAR = "cerca"
    MEDIUM = "medio"
    FAR = "lejos"


class Coordinate(BaseModel):
    """위경도 좌표 (십진 도)"""
    lat: float
    lng: float

    @field_validator("lat", "lng")
    @classmethod
    def _finite(cls, v: float) -> float:
        if not math.isfinite(v):
            raise ValueError("coordinate must be finite")
        return v

    def as_tuple(self) -> Tuple[float, float]:
        return (self.lat, self.lng)


class Detection(BaseModel):
    """추론 서비스가 제안한 손상 후보 1건"""
    severity: Severity
    position: QualitativePosition = QualitativePosition.CENTER
    distance: QualitativeDistance = QualitativeDistance.NEAR
    confidence: float = Field(ge=0.0, le=1.0)
    description: str = ""


class ReportRecord(BaseModel):
    """저장되는 신고 레코드"""
    id: str
    location: Coordinate
    zone: Zone
    street: str
    description: str = ""
    severity: Severity = Severity.MEDIUM
    photo_ref: Optional[str] = None
    auto_detected: bool = False
    detection_confidence: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    created_at: datetime
    updated_at: datetime
    status: ReportStatus = ReportStatus.PENDING
    updated_by: Optional[str] = None

    @model_validator(mode="after")
    def _confidence_iff_auto(self) -> "ReportRecord":
        # 자동 탐지 레코드에만 신뢰도가 존재
        if self.auto_detected != (self.detection_confidence is not None):
            raise ValueError("detection_confidence must be set if and only if auto_detected")
        return self


class CandidateReport(BaseModel):
    """사용자 확인 전의 자동 탐지 후보"""
    candidate_id: str
    detection: Detection
    base: Coordinate
    heading: float = 0.0
    location: Coordinate
    zone: Zone


class NewReport(BaseModel):
    """수동 신고 제출 페이로드"""
    street: str = Field(min_length=1)
    lat: float
    lng: float
    description: str = ""
    severity: Severity = Severity.MEDIUM
    photo: Optional[str] = None               # base64 (data URL 허용)

    @field_validator("street")
    @classmethod
    def _street_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("street is required")
        return v.strip()

    @field_validator("lat", "lng")
    @classmethod
    def _finite(cls, v: float) -> float:
        if not math.isfinite(v):
            raise ValueError("coordinate must be finite")
        return v

    @model_validator(mode="after")
    def _in_range(self) -> "NewReport":
        if not validate_coordinates(self.lat, self.lng):
            raise ValueError("coordinate out of range")
        return self


class ZoneBreakdown(BaseModel):
    """구역별 심각도 집계"""
    total: int = 0
    alta: int = 0
    media: int = 0
    baja: int = 0


class Statistics(BaseModel):
    """전체 통계 문서"""
    total: int
    by_severity: Dict[Severity, int]
    by_zone: Dict[Zone, int]
    by_status: Dict[ReportStatus, int]
    updated_at: datetime


class WeeklySummary(BaseModel):
    """주간 요약"""
    period_start: datetime
    period_end: datetime
    total: int
    by_severity: Dict[Severity, int]
    most_affected_zones: List[Tuple[Zone, int]] = Field(default_factory=list)

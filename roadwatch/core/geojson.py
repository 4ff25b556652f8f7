"""
GeoJSON export for RoadWatch.
"""

from typing import Any, Dict, Iterable
from .models import ReportRecord

def to_feature(record: ReportRecord) -> Dict[str, Any]:
    # GeoJSON 좌표 순서는 (경도, 위도)
    return {
        "type": "Feature",
        "geometry": {
            "type": "Point",
            "coordinates": [record.location.lng, record.location.lat],
        },
        "properties": {
            "id": record.id,
            "street": record.street,
            "description": record.description,
            "severity": record.severity.value,
            "zone": record.zone.value,
            "created_at": record.created_at.isoformat(),
            "status": record.status.value,
            "photo_ref": record.photo_ref,
            "auto_detected": record.auto_detected,
        },
    }

def to_feature_collection(records: Iterable[ReportRecord]) -> Dict[str, Any]:
    """신고 목록을 FeatureCollection으로 변환합니다."""
    return {
        "type": "FeatureCollection",
        "features": [to_feature(r) for r in records],
    }

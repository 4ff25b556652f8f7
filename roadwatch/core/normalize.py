"""
Normalization functions for RoadWatch.

This module converts the raw answer of the image-inference service
into Detection models.
"""

import json
from typing import Any, Dict, List, Union
from jsonschema import validate
from jsonschema.exceptions import ValidationError
from .estimator import parse_distance, parse_position
from .models import Detection, Severity
from roadwatch.observability.logging_setup import get_logger

log = get_logger("roadwatch.normalize")

DETECTIONS_SCHEMA = {
    "type": "object",
    "required": ["detections"],
    "properties": {
        "detections": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "severity": {"type": ["string", "integer"]},
                    "position": {"type": ["string", "null"]},
                    "distance": {"type": ["string", "null"]},
                    "confidence": {"type": ["number", "string"]},
                    "description": {"type": ["string", "null"]},
                },
            },
        },
    },
}

# 스페인어/영어/숫자 심각도 매핑
SEVERITY_MAP = {
    "baja": Severity.LOW,
    "low": Severity.LOW,
    "media": Severity.MEDIUM,
    "medium": Severity.MEDIUM,
    "moderate": Severity.MEDIUM,
    "alta": Severity.HIGH,
    "high": Severity.HIGH,
    "severe": Severity.HIGH,
    1: Severity.LOW,
    2: Severity.MEDIUM,
    3: Severity.HIGH,
}

def map_severity(raw: Any) -> Severity:
    """심각도 라벨을 매핑합니다. 알 수 없는 값은 media."""
    if isinstance(raw, int) and not isinstance(raw, bool):
        return SEVERITY_MAP.get(raw, Severity.MEDIUM)
    return SEVERITY_MAP.get(str(raw).strip().lower(), Severity.MEDIUM)

def _confidence(raw: Any) -> float:
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return 0.0
    if value != value:  # NaN
        return 0.0
    return min(1.0, max(0.0, value))

def to_detections(raw: Union[bytes, str, Dict[str, Any]]) -> List[Detection]:
    """
    추론 응답을 Detection 목록으로 변환합니다.
    
    Args:
        raw: 추론 서비스 응답 (JSON bytes/str 또는 dict)
        
    Returns:
        Detection 목록 (없으면 빈 목록)
        
    Raises:
        ValueError: 응답이 스키마와 맞지 않는 경우
    """
    if isinstance(raw, bytes):
        obj = json.loads(raw.decode("utf-8"))
    elif isinstance(raw, str):
        obj = json.loads(raw)
    elif isinstance(raw, dict):
        obj = raw
    else:
        raise ValueError(f"Unsupported raw type: {type(raw)}. Expected bytes, str or dict")

    try:
        validate(instance=obj, schema=DETECTIONS_SCHEMA)
    except ValidationError as e:
        log.error(f"추론 응답 스키마 검증 실패: {e.message}")
        raise ValueError(f"inference payload validation failed: {e.message}") from e

    detections = []
    for item in obj["detections"]:
        detections.append(Detection(
            severity=map_severity(item.get("severity", "media")),
            position=parse_position(item.get("position")),
            distance=parse_distance(item.get("distance")),
            confidence=_confidence(item.get("confidence", 0.0)),
            description=item.get("description") or "",
        ))

    log.info(f"추론 응답 정규화 완료 count:{len(detections)}")
    return detections

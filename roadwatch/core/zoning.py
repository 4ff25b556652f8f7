"""
Zone classification for RoadWatch.

Maps a coordinate to one of six fixed zones relative to the municipal
reference point. Thresholds and rule order are fixed: historical
records were classified this way.
"""

from typing import Tuple, Union
from .models import Coordinate, ReportRecord, Zone

# 미아우아틀란 중심 (위도, 경도)
MUNICIPAL_CENTER = Coordinate(lat=16.3219, lng=-96.5958)

CENTER_BOX_DEG = 0.005
DIRECTIONAL_BAND_DEG = 0.01

# 화면 표시 및 집계 순서
ZONES = (Zone.CENTER, Zone.NORTH, Zone.SOUTH, Zone.EAST, Zone.WEST, Zone.PERIPHERY)

PointLike = Union[Coordinate, Tuple[float, float]]

def _coerce(p: PointLike) -> Tuple[float, float]:
    if isinstance(p, Coordinate):
        return p.lat, p.lng
    return float(p[0]), float(p[1])

def classify(point: PointLike, reference: PointLike = MUNICIPAL_CENTER) -> Zone:
    """
    좌표를 구역으로 분류합니다.
    
    Args:
        point: 분류할 좌표
        reference: 기준점 좌표
        
    Returns:
        구역 (항상 6개 중 하나)
    """
    lat, lng = _coerce(point)
    ref_lat, ref_lng = _coerce(reference)
    d_lat = lat - ref_lat
    d_lng = lng - ref_lng

    # 중심 박스가 모든 방향 규칙보다 우선
    if abs(d_lat) < CENTER_BOX_DEG and abs(d_lng) < CENTER_BOX_DEG:
        return Zone.CENTER
    # 북 > 남 > 동 > 서 순서로 판정
    if d_lat > DIRECTIONAL_BAND_DEG:
        return Zone.NORTH
    if d_lat < -DIRECTIONAL_BAND_DEG:
        return Zone.SOUTH
    if d_lng > DIRECTIONAL_BAND_DEG:
        return Zone.EAST
    if d_lng < -DIRECTIONAL_BAND_DEG:
        return Zone.WEST
    return Zone.PERIPHERY

def zone_consistent(record: ReportRecord, reference: PointLike = MUNICIPAL_CENTER) -> bool:
    """저장된 구역이 좌표로부터 재계산한 구역과 같은지 확인합니다."""
    return record.zone == classify(record.location, reference)

def parse_zone(value: str) -> Zone:
    """
    구역 이름을 파싱합니다 (대소문자 무시, 스페인어/영어 이름 허용).
    
    Raises:
        ValueError: 알 수 없는 구역 이름
    """
    key = value.strip().lower()
    for zone in Zone:
        if key in (zone.value.lower(), zone.name.lower()):
            return zone
    raise ValueError(f"unknown zone: {value}")

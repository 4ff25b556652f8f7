"""
Photo-relative position estimation for RoadWatch.

Turns a qualitative (position, distance) label pair reported for a
damage instance in a photo into an absolute coordinate, using a
small-displacement equirectangular approximation around the camera.
Valid only for the tens-of-meters buckets below.
"""

import math
from typing import Union
from .errors import PolarLatitudeError
from .models import Coordinate, QualitativeDistance, QualitativePosition
from roadwatch.observability.logging_setup import get_logger

log = get_logger("roadwatch.estimator")

EARTH_RADIUS_M = 6_371_000.0

# 극점에서 cos(lat) → 0
POLAR_MARGIN_DEG = 1e-9

DISTANCE_METERS = {
    QualitativeDistance.NEAR: 3.0,
    QualitativeDistance.MEDIUM: 10.0,
    QualitativeDistance.FAR: 20.0,
}

# UP은 CENTER와 같은 방위 (원래 매핑 유지)
BEARING_OFFSET_DEG = {
    QualitativePosition.CENTER: 0.0,
    QualitativePosition.LEFT: -45.0,
    QualitativePosition.RIGHT: 45.0,
    QualitativePosition.UP: 0.0,
    QualitativePosition.DOWN: 180.0,
}

_POSITION_ALIASES = {
    "center": QualitativePosition.CENTER,
    "centre": QualitativePosition.CENTER,
    "left": QualitativePosition.LEFT,
    "right": QualitativePosition.RIGHT,
    "up": QualitativePosition.UP,
    "top": QualitativePosition.UP,
    "down": QualitativePosition.DOWN,
    "bottom": QualitativePosition.DOWN,
}

_DISTANCE_ALIASES = {
    "near": QualitativeDistance.NEAR,
    "close": QualitativeDistance.NEAR,
    "medium": QualitativeDistance.MEDIUM,
    "media": QualitativeDistance.MEDIUM,
    "far": QualitativeDistance.FAR,
}

def parse_position(value: Union[QualitativePosition, str, None]) -> QualitativePosition:
    """위치 라벨을 파싱합니다. 알 수 없는 값은 CENTER로 대체합니다."""
    if isinstance(value, QualitativePosition):
        return value
    key = str(value or "").strip().lower()
    try:
        return QualitativePosition(key)
    except ValueError:
        pass
    if key in _POSITION_ALIASES:
        return _POSITION_ALIASES[key]
    log.warning(f"알 수 없는 위치 라벨, centro로 대체: {value!r}")
    return QualitativePosition.CENTER

def parse_distance(value: Union[QualitativeDistance, str, None]) -> QualitativeDistance:
    """거리 라벨을 파싱합니다. 알 수 없는 값은 NEAR로 대체합니다."""
    if isinstance(value, QualitativeDistance):
        return value
    key = str(value or "").strip().lower()
    try:
        return QualitativeDistance(key)
    except ValueError:
        pass
    if key in _DISTANCE_ALIASES:
        return _DISTANCE_ALIASES[key]
    log.warning(f"알 수 없는 거리 라벨, cerca로 대체: {value!r}")
    return QualitativeDistance.NEAR

def estimate(base: Coordinate,
             position: Union[QualitativePosition, str],
             distance: Union[QualitativeDistance, str],
             heading: float = 0.0) -> Coordinate:
    """
    카메라 위치 기준 상대 위치를 절대 좌표로 추정합니다.
    
    Args:
        base: 촬영 위치
        position: 사진 내 상대 위치 라벨
        distance: 사진 내 상대 거리 라벨
        heading: 카메라 방위각 (도, 북쪽 0 시계방향)
        
    Returns:
        추정 좌표
        
    Raises:
        PolarLatitudeError: 극점 위도에서 호출된 경우
    """
    if abs(base.lat) >= 90.0 - POLAR_MARGIN_DEG:
        raise PolarLatitudeError(f"cannot estimate offsets at latitude {base.lat}")

    meters = DISTANCE_METERS[parse_distance(distance)]
    bearing = math.radians(heading + BEARING_OFFSET_DEG[parse_position(position)])

    delta_lat = (meters * math.cos(bearing)) / EARTH_RADIUS_M * (180 / math.pi)
    delta_lng = (meters * math.sin(bearing)) / (EARTH_RADIUS_M * math.cos(math.radians(base.lat))) * (180 / math.pi)

    return Coordinate(lat=base.lat + delta_lat, lng=base.lng + delta_lng)

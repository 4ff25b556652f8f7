"""
Geographic utilities for RoadWatch.

This module provides great-circle distance, initial bearing and
coordinate range checks.
"""

import math

EARTH_RADIUS_KM = 6371.0

def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    두 지점 간의 Haversine 거리를 계산합니다 (킬로미터).
    
    Args:
        lat1: 첫 번째 지점의 위도
        lon1: 첫 번째 지점의 경도
        lat2: 두 번째 지점의 위도
        lon2: 두 번째 지점의 경도
        
    Returns:
        두 지점 간의 거리 (킬로미터)
    """
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    dlat = lat2_rad - lat1_rad
    dlon = math.radians(lon2 - lon1)
    
    a = (math.sin(dlat / 2) ** 2 +
         math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(dlon / 2) ** 2)
    c = 2 * math.asin(min(1.0, math.sqrt(a)))
    
    return c * EARTH_RADIUS_KM

def distance_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """두 지점 간 거리 (미터)"""
    return haversine_distance(lat1, lon1, lat2, lon2) * 1000.0

def initial_bearing(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    첫 번째 지점에서 두 번째 지점으로의 초기 방위각을 계산합니다.
    
    Returns:
        방위각 (도, 0 <= b < 360, 북쪽 0 시계방향)
    """
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dlon = math.radians(lon2 - lon1)
    y = math.sin(dlon) * math.cos(phi2)
    x = math.cos(phi1) * math.sin(phi2) - math.sin(phi1) * math.cos(phi2) * math.cos(dlon)
    return (math.degrees(math.atan2(y, x)) + 360.0) % 360.0

def validate_coordinates(lat: float, lon: float) -> bool:
    """
    좌표가 유효한지 확인합니다.
    
    Args:
        lat: 위도
        lon: 경도
        
    Returns:
        좌표가 유효하면 True
    """
    return -90 <= lat <= 90 and -180 <= lon <= 180

"""
Aggregate statistics for RoadWatch.
"""

from datetime import datetime, timedelta
from typing import Dict, Iterable, List
from .models import (
    ReportRecord, ReportStatus, Severity, Statistics, WeeklySummary, Zone, ZoneBreakdown
)
from .zoning import ZONES

def _by_severity(records: List[ReportRecord]) -> Dict[Severity, int]:
    counts = {s: 0 for s in Severity}
    for r in records:
        counts[r.severity] += 1
    return counts

def _by_zone(records: List[ReportRecord]) -> Dict[Zone, int]:
    counts = {z: 0 for z in ZONES}
    for r in records:
        counts[r.zone] += 1
    return counts

def compute_statistics(records: Iterable[ReportRecord], now: datetime) -> Statistics:
    """전체 통계를 계산합니다 (빈 구역/상태는 0으로 채움)."""
    records = list(records)
    by_status = {s: 0 for s in ReportStatus}
    for r in records:
        by_status[r.status] += 1
    return Statistics(
        total=len(records),
        by_severity=_by_severity(records),
        by_zone=_by_zone(records),
        by_status=by_status,
        updated_at=now,
    )

def zone_breakdown(records: Iterable[ReportRecord]) -> Dict[Zone, ZoneBreakdown]:
    """구역별 심각도 집계"""
    stats = {z: ZoneBreakdown() for z in ZONES}
    for r in records:
        entry = stats[r.zone]
        entry.total += 1
        setattr(entry, r.severity.value, getattr(entry, r.severity.value) + 1)
    return stats

def weekly_summary(records: Iterable[ReportRecord], now: datetime, days: int = 7) -> WeeklySummary:
    """
    최근 N일간 신고 요약을 만듭니다.
    
    Args:
        records: 신고 목록
        now: 기준 시각
        days: 기간 (일)
        
    Returns:
        주간 요약 (가장 많이 신고된 구역 순)
    """
    start = now - timedelta(days=days)
    recent = [r for r in records if r.created_at >= start]
    zone_counts = _by_zone(recent)
    # 건수 내림차순, 동률은 ZONES 순서
    ranked = sorted(
        ((z, c) for z, c in zone_counts.items() if c > 0),
        key=lambda item: (-item[1], ZONES.index(item[0])),
    )
    return WeeklySummary(
        period_start=start,
        period_end=now,
        total=len(recent),
        by_severity=_by_severity(recent),
        most_affected_zones=ranked,
    )

"""
Report repository port interface.
"""

from datetime import datetime
from typing import List, Optional, Protocol
from roadwatch.core.models import (
    ReportRecord, ReportStatus, Severity, Statistics, WeeklySummary, Zone
)

class ReportRepositoryPort(Protocol):
    """신고 저장소 포트 인터페이스"""
    
    async def create(self, record: ReportRecord) -> str:
        """신고를 저장하고 ID를 반환합니다."""
        ...
    
    async def get(self, report_id: str) -> Optional[ReportRecord]:
        ...
    
    async def list_all(self) -> List[ReportRecord]:
        """모든 신고 (최신순)"""
        ...
    
    async def list_filtered(self, zone: Optional[Zone] = None,
                            severity: Optional[Severity] = None) -> List[ReportRecord]:
        ...
    
    async def list_since(self, since: datetime) -> List[ReportRecord]:
        ...
    
    async def update_status(self, report_id: str, status: ReportStatus,
                            updated_by: Optional[str] = None) -> ReportRecord:
        """
        상태만 변경합니다.
        
        Raises:
            ReportNotFoundError: 존재하지 않는 ID
        """
        ...
    
    async def save_statistics(self, stats: Statistics) -> None:
        ...
    
    async def get_statistics(self) -> Optional[Statistics]:
        ...
    
    async def add_weekly_summary(self, summary: WeeklySummary) -> int:
        ...
    
    async def list_weekly_summaries(self) -> List[WeeklySummary]:
        """저장된 주간 요약 (최신순)"""
        ...
    
    async def photo_refs(self) -> List[str]:
        """신고가 참조 중인 사진 목록"""
        ...
    
    async def get_count(self) -> int:
        ...

"""
New-report notification port interface.
"""

from typing import Protocol
from roadwatch.core.models import ReportRecord

class NotifierPort(Protocol):
    """신고 알림 포트 인터페이스"""
    
    async def notify_new_report(self, record: ReportRecord) -> None:
        ...

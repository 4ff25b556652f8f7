"""
SQLite-based report repository for RoadWatch.

Reports are stored as JSON documents with the fields used for
filtering copied into indexed columns.
"""

import aiosqlite
from datetime import datetime, timezone
from typing import List, Optional
from roadwatch.core.errors import ReportNotFoundError
from roadwatch.core.models import (
    ReportRecord, ReportStatus, Severity, Statistics, WeeklySummary, Zone
)
from roadwatch.observability.logging_setup import get_logger

log = get_logger("roadwatch.reports_db")

# SQLite 스키마
SCHEMA = """
CREATE TABLE IF NOT EXISTS reports (
    id TEXT PRIMARY KEY,
    zone TEXT NOT NULL,
    severity TEXT NOT NULL,
    status TEXT NOT NULL,
    created_at TEXT NOT NULL,
    doc TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_reports_created ON reports(created_at);
CREATE INDEX IF NOT EXISTS idx_reports_zone ON reports(zone);
CREATE INDEX IF NOT EXISTS idx_reports_severity ON reports(severity);
CREATE TABLE IF NOT EXISTS statistics (
    k TEXT PRIMARY KEY,
    doc TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS weekly_summaries (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    created_at TEXT NOT NULL,
    doc TEXT NOT NULL
);
"""

STATS_KEY = "general"

def _ts(dt: datetime) -> str:
    # 정렬 가능한 UTC ISO 문자열
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat()

class SQLiteReportRepository:
    """SQLite 기반 신고 저장소"""
    
    def __init__(self, path: str):
        """
        초기화합니다.
        
        Args:
            path: SQLite 데이터베이스 파일 경로
        """
        self.path = path
        log.info(f"SQLiteReportRepository 초기화: {path}")
    
    async def init(self) -> None:
        """데이터베이스를 초기화합니다."""
        async with aiosqlite.connect(self.path) as db:
            await db.executescript(SCHEMA)
            await db.commit()
        log.info(f"SQLiteReportRepository 스키마 초기화 완료: {self.path}")
    
    async def create(self, record: ReportRecord) -> str:
        """
        신고를 저장합니다.
        
        Args:
            record: 저장할 신고
            
        Returns:
            신고 ID
        """
        async with aiosqlite.connect(self.path) as db:
            await db.execute(
                "INSERT INTO reports (id, zone, severity, status, created_at, doc) VALUES (?, ?, ?, ?, ?, ?)",
                (record.id, record.zone.value, record.severity.value, record.status.value,
                 _ts(record.created_at), record.model_dump_json())
            )
            await db.commit()
        log.info(f"신고 저장됨 id:{record.id} zone:{record.zone.value} severity:{record.severity.value}")
        return record.id
    
    async def get(self, report_id: str) -> Optional[ReportRecord]:
        async with aiosqlite.connect(self.path) as db:
            cursor = await db.execute("SELECT doc FROM reports WHERE id = ?", (report_id,))
            row = await cursor.fetchone()
        return ReportRecord.model_validate_json(row[0]) if row else None
    
    async def _select(self, where: str = "", params: tuple = ()) -> List[ReportRecord]:
        sql = "SELECT doc FROM reports"
        if where:
            sql += f" WHERE {where}"
        sql += " ORDER BY created_at DESC"
        async with aiosqlite.connect(self.path) as db:
            cursor = await db.execute(sql, params)
            rows = await cursor.fetchall()
        return [ReportRecord.model_validate_json(r[0]) for r in rows]
    
    async def list_all(self) -> List[ReportRecord]:
        return await self._select()
    
    async def list_filtered(self, zone: Optional[Zone] = None,
                            severity: Optional[Severity] = None) -> List[ReportRecord]:
        """구역/심각도 조건을 조합해 조회합니다."""
        clauses, params = [], []
        if zone is not None:
            clauses.append("zone = ?")
            params.append(zone.value)
        if severity is not None:
            clauses.append("severity = ?")
            params.append(severity.value)
        return await self._select(" AND ".join(clauses), tuple(params))
    
    async def list_since(self, since: datetime) -> List[ReportRecord]:
        return await self._select("created_at >= ?", (_ts(since),))
    
    async def update_status(self, report_id: str, status: ReportStatus,
                            updated_by: Optional[str] = None) -> ReportRecord:
        """
        신고 상태를 변경합니다. 상태 외 필드는 바뀌지 않습니다.
        
        Raises:
            ReportNotFoundError: 존재하지 않는 ID
        """
        async with aiosqlite.connect(self.path) as db:
            cursor = await db.execute("SELECT doc FROM reports WHERE id = ?", (report_id,))
            row = await cursor.fetchone()
            if not row:
                raise ReportNotFoundError(report_id)
            
            record = ReportRecord.model_validate_json(row[0])
            updated = record.model_copy(update={
                "status": status,
                "updated_at": datetime.now(timezone.utc),
                "updated_by": updated_by,
            })
            await db.execute(
                "UPDATE reports SET status = ?, doc = ? WHERE id = ?",
                (status.value, updated.model_dump_json(), report_id)
            )
            await db.commit()
        
        log.info(f"신고 상태 변경 id:{report_id} status:{status.value} by:{updated_by}")
        return updated
    
    async def photo_refs(self) -> List[str]:
        """신고가 참조 중인 사진 목록"""
        return [r.photo_ref for r in await self.list_all() if r.photo_ref]
    
    async def save_statistics(self, stats: Statistics) -> None:
        async with aiosqlite.connect(self.path) as db:
            await db.execute(
                "INSERT OR REPLACE INTO statistics (k, doc) VALUES (?, ?)",
                (STATS_KEY, stats.model_dump_json())
            )
            await db.commit()
    
    async def get_statistics(self) -> Optional[Statistics]:
        async with aiosqlite.connect(self.path) as db:
            cursor = await db.execute("SELECT doc FROM statistics WHERE k = ?", (STATS_KEY,))
            row = await cursor.fetchone()
        return Statistics.model_validate_json(row[0]) if row else None
    
    async def add_weekly_summary(self, summary: WeeklySummary) -> int:
        async with aiosqlite.connect(self.path) as db:
            cursor = await db.execute(
                "INSERT INTO weekly_summaries (created_at, doc) VALUES (?, ?)",
                (_ts(summary.period_end), summary.model_dump_json())
            )
            await db.commit()
            return cursor.lastrowid
    
    async def list_weekly_summaries(self) -> List[WeeklySummary]:
        async with aiosqlite.connect(self.path) as db:
            cursor = await db.execute("SELECT doc FROM weekly_summaries ORDER BY id DESC")
            rows = await cursor.fetchall()
        return [WeeklySummary.model_validate_json(r[0]) for r in rows]
    
    async def get_count(self) -> int:
        async with aiosqlite.connect(self.path) as db:
            cursor = await db.execute("SELECT COUNT(*) FROM reports")
            result = await cursor.fetchone()
            return result[0] if result else 0

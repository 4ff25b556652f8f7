"""
SQLite-based outbox for RoadWatch.

Notifications are written here first and drained by the MQTT
notifier, so a broker outage does not lose new-report events.
"""

import aiosqlite
import time
from dataclasses import dataclass
from typing import Optional
from roadwatch.observability.logging_setup import get_logger

log = get_logger("roadwatch.outbox")

SCHEMA = """
CREATE TABLE IF NOT EXISTS outbox (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    topic TEXT NOT NULL,
    payload BLOB NOT NULL,
    qos INTEGER NOT NULL DEFAULT 1,
    created_at INTEGER NOT NULL,
    attempts INTEGER NOT NULL DEFAULT 0
);
CREATE INDEX IF NOT EXISTS idx_outbox_created ON outbox(created_at, id);
"""

@dataclass
class OutboxItem:
    """대기 중인 알림 1건"""
    id: int
    topic: str
    payload: bytes
    qos: int
    attempts: int

class SQLiteOutbox:
    """SQLite 기반 알림 Outbox"""
    
    def __init__(self, path: str):
        self.path = path
    
    async def init(self) -> None:
        """데이터베이스를 초기화합니다."""
        async with aiosqlite.connect(self.path) as db:
            await db.executescript(SCHEMA)
            await db.commit()
        log.info(f"SQLiteOutbox 스키마 초기화 완료: {self.path}")
    
    async def enqueue(self, topic: str, payload: bytes, qos: int = 1) -> int:
        """
        알림을 추가합니다.
        
        Returns:
            생성된 항목의 ID
        """
        async with aiosqlite.connect(self.path) as db:
            cursor = await db.execute(
                "INSERT INTO outbox (topic, payload, qos, created_at) VALUES (?, ?, ?, ?)",
                (topic, payload, qos, int(time.time()))
            )
            await db.commit()
            return cursor.lastrowid
    
    async def peek_oldest(self) -> Optional[OutboxItem]:
        """가장 오래된 항목을 조회합니다 (삭제하지 않음)."""
        async with aiosqlite.connect(self.path) as db:
            cursor = await db.execute(
                "SELECT id, topic, payload, qos, attempts FROM outbox ORDER BY created_at ASC, id ASC LIMIT 1"
            )
            row = await cursor.fetchone()
        if row is None:
            return None
        return OutboxItem(id=row[0], topic=row[1], payload=row[2], qos=row[3], attempts=row[4])
    
    async def mark_attempt(self, oid: int) -> None:
        async with aiosqlite.connect(self.path) as db:
            await db.execute("UPDATE outbox SET attempts = attempts + 1 WHERE id = ?", (oid,))
            await db.commit()
    
    async def delete(self, oid: int) -> None:
        async with aiosqlite.connect(self.path) as db:
            await db.execute("DELETE FROM outbox WHERE id = ?", (oid,))
            await db.commit()
    
    async def get_count(self) -> int:
        async with aiosqlite.connect(self.path) as db:
            cursor = await db.execute("SELECT COUNT(*) FROM outbox")
            result = await cursor.fetchone()
            return result[0] if result else 0

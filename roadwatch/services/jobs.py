"""
Scheduled jobs for RoadWatch.

Hourly statistics refresh, daily orphan-photo cleanup and the weekly
summary. Each job can also be run directly.
"""

import asyncio
import time
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Awaitable, Callable, Optional
from roadwatch.core.models import Statistics, WeeklySummary
from roadwatch.core.stats import compute_statistics, weekly_summary
from roadwatch.ports import PhotoStorePort, ReportRepositoryPort
from roadwatch.observability import metrics
from roadwatch.observability.logging_setup import get_logger

log = get_logger("roadwatch.jobs")

def photo_created_at(ref: str) -> Optional[float]:
    """사진 참조 이름("<millis>_<id>.jpg")에서 저장 시각(epoch 초)을 읽습니다."""
    stamp = ref.rsplit("/", 1)[-1].split("_", 1)[0]
    return int(stamp) / 1000.0 if stamp.isdigit() else None


def next_weekly_run(now: datetime, tz: tzinfo, weekday: int = 0, hour: int = 9) -> datetime:
    """
    다음 주간 실행 시각을 계산합니다.
    
    Args:
        now: 현재 시각 (timezone-aware)
        tz: 일정 기준 시간대
        weekday: 요일 (0=월요일)
        hour: 시각 (0-23)
        
    Returns:
        now 이후 가장 가까운 실행 시각 (tz 기준)
    """
    local = now.astimezone(tz)
    candidate = local.replace(hour=hour, minute=0, second=0, microsecond=0)
    candidate += timedelta(days=(weekday - local.weekday()) % 7)
    if candidate <= local:
        candidate += timedelta(days=7)
    return candidate

class JobScheduler:
    """주기 작업 스케줄러"""
    
    def __init__(self,
                 repo: ReportRepositoryPort,
                 photos: PhotoStorePort,
                 *,
                 tz: tzinfo = timezone.utc,
                 stats_interval_sec: int = 3600,
                 cleanup_interval_sec: int = 86400,
                 weekly_weekday: int = 0,
                 weekly_hour: int = 9,
                 weekly_days: int = 7,
                 photo_grace_sec: int = 3600):
        self.repo = repo
        self.photos = photos
        self.tz = tz
        self.stats_interval_sec = stats_interval_sec
        self.cleanup_interval_sec = cleanup_interval_sec
        self.weekly_weekday = weekly_weekday
        self.weekly_hour = weekly_hour
        self.weekly_days = weekly_days
        self.photo_grace_sec = photo_grace_sec
        self.start_time = time.time()
        self._tasks: list[asyncio.Task] = []
    
    async def refresh_statistics(self, now: Optional[datetime] = None) -> Statistics:
        """전체 통계를 다시 계산해 저장합니다."""
        now = now or datetime.now(timezone.utc)
        stats = compute_statistics(await self.repo.list_all(), now)
        await self.repo.save_statistics(stats)
        log.info(f"통계 갱신 완료 total:{stats.total}")
        return stats
    
    async def cleanup_orphan_photos(self, now: Optional[datetime] = None) -> int:
        """
        어떤 신고도 참조하지 않는 사진을 삭제합니다.
        저장된 지 photo_grace_sec 미만인 사진은 신고 저장 전일 수 있어 건너뜁니다.
        
        Returns:
            삭제된 사진 수
        """
        now = now or datetime.now(timezone.utc)
        cutoff = now.timestamp() - self.photo_grace_sec
        in_use = set(await self.repo.photo_refs())
        deleted = 0
        for ref in await self.photos.list_refs():
            created = photo_created_at(ref)
            if created is not None and created > cutoff:
                continue
            if ref not in in_use:
                await self.photos.delete(ref)
                deleted += 1
                log.info(f"고아 사진 삭제: {ref}")
        log.info(f"사진 정리 완료 deleted:{deleted}")
        return deleted
    
    async def generate_weekly_summary(self, now: Optional[datetime] = None) -> WeeklySummary:
        """최근 주간 요약을 만들어 저장합니다."""
        now = now or datetime.now(timezone.utc)
        since = now - timedelta(days=self.weekly_days)
        summary = weekly_summary(await self.repo.list_since(since), now, self.weekly_days)
        await self.repo.add_weekly_summary(summary)
        log.info(f"주간 요약 생성 total:{summary.total} zones:{summary.most_affected_zones}")
        return summary
    
    async def _run_job(self, name: str, job: Callable[[], Awaitable[object]]) -> None:
        try:
            await job()
            metrics.job_runs.labels(job=name, result="ok").inc()
        except Exception as e:
            # 실패해도 다음 주기에 다시 실행
            metrics.job_runs.labels(job=name, result="error").inc()
            log.error(f"작업 실패 job:{name} error:{e}")
    
    async def _every(self, name: str, interval_sec: int, job: Callable[[], Awaitable[object]]) -> None:
        while True:
            await self._run_job(name, job)
            metrics.uptime_seconds.set(time.time() - self.start_time)
            await asyncio.sleep(interval_sec)
    
    async def _weekly(self) -> None:
        while True:
            now = datetime.now(timezone.utc)
            target = next_weekly_run(now, self.tz, self.weekly_weekday, self.weekly_hour)
            delay = (target - now).total_seconds()
            log.info(f"다음 주간 요약 예정: {target.isoformat()}")
            await asyncio.sleep(max(0.0, delay))
            await self._run_job("weekly_summary", self.generate_weekly_summary)
    
    def start(self) -> None:
        """백그라운드 작업을 시작합니다."""
        self._tasks = [
            asyncio.create_task(self._every("refresh_statistics", self.stats_interval_sec, self.refresh_statistics)),
            asyncio.create_task(self._every("cleanup_orphan_photos", self.cleanup_interval_sec, self.cleanup_orphan_photos)),
            asyncio.create_task(self._weekly()),
        ]
        log.info("작업 스케줄러 시작됨")
    
    async def stop(self) -> None:
        """백그라운드 작업을 취소합니다."""
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        log.info("작업 스케줄러 중지됨")

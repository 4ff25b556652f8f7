"""
Report workflow for RoadWatch.

Submission, photo analysis with propose-then-confirm candidates,
listing, moderation status changes and exports.
"""

import base64
import binascii
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple
from roadwatch.core import candidates as pipeline
from roadwatch.core.errors import CandidateNotFoundError, ReportNotFoundError
from roadwatch.core.geojson import to_feature_collection
from roadwatch.core.models import (
    CandidateReport, Coordinate, NewReport, ReportRecord, ReportStatus,
    Severity, Statistics, WeeklySummary, Zone, ZoneBreakdown
)
from roadwatch.core.normalize import to_detections
from roadwatch.core.stats import compute_statistics, zone_breakdown
from roadwatch.common.geo import validate_coordinates
from roadwatch.core.zoning import MUNICIPAL_CENTER, PointLike, zone_consistent
from roadwatch.ports import InferencePort, NotifierPort, PhotoStorePort, ReportRepositoryPort
from roadwatch.observability import metrics
from roadwatch.observability.logging_setup import get_logger

log = get_logger("roadwatch.reports")

def decode_photo(photo: str) -> bytes:
    """
    base64 사진을 디코딩합니다 (data URL 접두사 허용).
    
    Raises:
        ValueError: 잘못된 base64
    """
    if photo.startswith("data:"):
        photo = photo.split(",", 1)[-1]
    try:
        return base64.b64decode(photo, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError("photo is not valid base64") from e

class ReportService:
    """신고 처리 서비스"""
    
    def __init__(self,
                 repo: ReportRepositoryPort,
                 photos: PhotoStorePort,
                 *,
                 inference: Optional[InferencePort] = None,
                 notifier: Optional[NotifierPort] = None,
                 reference: PointLike = MUNICIPAL_CENTER,
                 candidate_ttl_sec: int = 3600):
        """
        초기화합니다.
        
        Args:
            repo: 신고 저장소
            photos: 사진 저장소
            inference: 이미지 추론 포트 (None이면 사진 분석 비활성화)
            notifier: 신고 알림 포트 (None이면 알림 생략)
            reference: 구역 분류 기준점
            candidate_ttl_sec: 미확정 후보 보관 시간 (초)
        """
        self.repo = repo
        self.photos = photos
        self.inference = inference
        self.notifier = notifier
        self.reference = reference
        self.candidate_ttl_sec = candidate_ttl_sec
        # candidate_id -> (후보, 사진, 생성 시각)
        self._pending: Dict[str, Tuple[CandidateReport, Optional[bytes], float]] = {}
    
    async def _persist(self, record: ReportRecord, source: str) -> ReportRecord:
        if not zone_consistent(record, self.reference):
            raise ValueError(f"zone {record.zone.value} does not match location of {record.id}")
        await self.repo.create(record)
        metrics.reports_created.labels(
            zone=record.zone.value, severity=record.severity.value, source=source
        ).inc()
        if self.notifier:
            try:
                await self.notifier.notify_new_report(record)
            except Exception as e:
                # 알림 실패는 저장된 신고에 영향 없음
                log.error(f"신고 알림 등록 실패 id:{record.id} error:{e}")
        return record
    
    async def submit(self, new_report: NewReport) -> ReportRecord:
        """
        수동 신고를 저장합니다.
        
        Args:
            new_report: 제출 페이로드
            
        Returns:
            저장된 신고
        """
        report_id = uuid.uuid4().hex
        photo_ref = None
        if new_report.photo:
            photo_ref = await self.photos.put(decode_photo(new_report.photo), report_id)
        
        record = pipeline.build_manual_report(
            new_report, reference=self.reference, photo_ref=photo_ref, report_id=report_id
        )
        return await self._persist(record, source="manual")
    
    async def analyze_photo(self, image: bytes, base: Coordinate, heading: float = 0.0,
                            mime_type: str = "image/jpeg") -> List[CandidateReport]:
        """
        사진을 분석해 확인 대기 후보 목록을 만듭니다. 아무것도 저장하지 않습니다.
        
        Raises:
            RuntimeError: 추론 포트가 설정되지 않은 경우
            InferenceError: 추론 서비스 호출 실패
            ValueError: 촬영 위치 범위 오류 또는 추론 응답 형식 오류
        """
        if self.inference is None:
            raise RuntimeError("inference is disabled")
        if not validate_coordinates(base.lat, base.lng):
            raise ValueError(f"photo location out of range: {base.as_tuple()}")
        
        self._expire_candidates()
        raw = await self.inference.analyze(image, mime_type)
        detections = to_detections(raw)
        
        with metrics.classify_seconds.time():
            proposed = pipeline.propose(detections, base, heading, self.reference)
        
        now = time.monotonic()
        for candidate in proposed:
            self._pending[candidate.candidate_id] = (candidate, image, now)
        metrics.candidates_proposed.inc(len(proposed))
        metrics.pending_candidates.set(len(self._pending))
        log.info(f"사진 분석 후보 생성 count:{len(proposed)} base:{base.as_tuple()}")
        return proposed
    
    def pending_candidates(self) -> List[CandidateReport]:
        self._expire_candidates()
        return [c for c, _, _ in self._pending.values()]
    
    def _take(self, candidate_id: str) -> Tuple[CandidateReport, Optional[bytes], float]:
        self._expire_candidates()
        try:
            return self._pending.pop(candidate_id)
        except KeyError:
            raise CandidateNotFoundError(candidate_id) from None
        finally:
            metrics.pending_candidates.set(len(self._pending))
    
    async def confirm_candidate(self, candidate_id: str, street: str,
                                attach_photo: bool = True) -> ReportRecord:
        """
        후보를 승인해 신고로 저장합니다.
        
        실패하면 후보는 대기 목록에 남아 다시 승인할 수 있습니다.
        
        Raises:
            CandidateNotFoundError: 없거나 만료된 후보
            ValueError: 빈 도로명 또는 범위를 벗어난 추정 좌표
        """
        entry = self._take(candidate_id)
        candidate, image, _ = entry
        try:
            record = pipeline.confirm(candidate, street, report_id=uuid.uuid4().hex)
            if attach_photo and image:
                photo_ref = await self.photos.put(image, record.id)
                record = record.model_copy(update={"photo_ref": photo_ref})
            record = await self._persist(record, source="auto")
        except Exception:
            self._pending[candidate_id] = entry
            metrics.pending_candidates.set(len(self._pending))
            raise
        
        metrics.candidates_resolved.labels(outcome="confirmed").inc()
        return record
    
    def discard_candidate(self, candidate_id: str) -> None:
        """후보를 버립니다."""
        self._take(candidate_id)
        metrics.candidates_resolved.labels(outcome="discarded").inc()
    
    def _expire_candidates(self) -> None:
        cutoff = time.monotonic() - self.candidate_ttl_sec
        expired = [k for k, (_, _, ts) in self._pending.items() if ts < cutoff]
        for key in expired:
            del self._pending[key]
        if expired:
            log.info(f"만료된 후보 정리 count:{len(expired)}")
    
    async def get_report(self, report_id: str) -> ReportRecord:
        record = await self.repo.get(report_id)
        if record is None:
            raise ReportNotFoundError(report_id)
        return record
    
    async def list_reports(self, zone: Optional[Zone] = None,
                           severity: Optional[Severity] = None) -> List[ReportRecord]:
        return await self.repo.list_filtered(zone=zone, severity=severity)
    
    async def update_status(self, report_id: str, status: ReportStatus,
                            updated_by: Optional[str] = None) -> ReportRecord:
        record = await self.repo.update_status(report_id, status, updated_by)
        metrics.status_updates.labels(status=status.value).inc()
        return record
    
    async def export_geojson(self) -> Dict[str, Any]:
        return to_feature_collection(await self.repo.list_all())
    
    async def statistics(self) -> Statistics:
        """저장소의 신고로 통계를 즉시 계산합니다."""
        return compute_statistics(await self.repo.list_all(), datetime.now(timezone.utc))
    
    async def zone_breakdown(self) -> Dict[Zone, ZoneBreakdown]:
        return zone_breakdown(await self.repo.list_all())
    
    async def weekly_summaries(self) -> List[WeeklySummary]:
        """저장된 주간 요약 (최신순)"""
        return await self.repo.list_weekly_summaries()

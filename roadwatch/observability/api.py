"""
HTTP API for RoadWatch.

Report endpoints, the municipal webhook, and the operational
health/readiness/metrics/info endpoints.
"""

import time
from typing import Optional
from fastapi import Body, FastAPI, Header, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from pydantic import BaseModel, Field, ValidationError
from roadwatch.core.errors import (
    CandidateNotFoundError, InferenceError, PolarLatitudeError, ReportNotFoundError
)
from roadwatch.common.geo import distance_m, initial_bearing
from roadwatch.core.estimator import estimate
from roadwatch.core.models import Coordinate, NewReport, ReportStatus, Severity
from roadwatch.core.zoning import classify, parse_zone
from roadwatch.services.reports import ReportService, decode_photo
from roadwatch.settings import Settings
from roadwatch.observability.logging_setup import get_logger

log = get_logger("roadwatch.api")

class PhotoAnalysisRequest(BaseModel):
    """사진 분석 요청"""
    image: str                                # base64 (data URL 허용)
    lat: float
    lng: float
    heading: float = 0.0
    mime_type: str = "image/jpeg"

class ConfirmRequest(BaseModel):
    street: str = Field(min_length=1)
    attach_photo: bool = True

def _parse_status(value: str) -> ReportStatus:
    key = value.strip().lower()
    for status in ReportStatus:
        if key in (status.value, status.name.lower()):
            return status
    raise ValueError(f"unknown status: {value}")

def _parse_severity(value: str) -> Severity:
    key = value.strip().lower()
    for severity in Severity:
        if key in (severity.value, severity.name.lower()):
            return severity
    raise ValueError(f"unknown severity: {value}")

def _dump(records) -> list:
    return [r.model_dump(mode="json") for r in records]

def create_app(settings: Settings, service: ReportService) -> FastAPI:
    """FastAPI 애플리케이션을 생성합니다."""
    app = FastAPI(
        title=settings.observability.service_name,
        version=settings.observability.build_version,
        description="Citizen road-damage reporting service"
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["Content-Type", "X-API-Key"],
    )
    
    start_time = time.time()
    
    @app.get("/health")
    async def health():
        """헬스 체크 엔드포인트"""
        return JSONResponse({
            "status": "ok",
            "service": settings.observability.service_name,
            "timestamp": time.time()
        })
    
    @app.get("/ready")
    async def ready():
        """레디니스 체크 엔드포인트 (DB 조회 가능 여부)"""
        try:
            await service.repo.get_count()
        except Exception as e:
            log.error(f"레디니스 확인 실패: {e}")
            raise HTTPException(status_code=503, detail="storage unavailable")
        return JSONResponse({
            "status": "ready",
            "service": settings.observability.service_name,
            "timestamp": time.time()
        })
    
    @app.get("/metrics")
    async def metrics():
        """Prometheus 메트릭 엔드포인트"""
        if not settings.observability.metrics_enabled:
            raise HTTPException(status_code=503, detail="Metrics disabled")
        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
    
    @app.get("/info")
    async def info():
        """서비스 정보 엔드포인트"""
        return JSONResponse({
            "service": settings.observability.service_name,
            "version": settings.observability.build_version,
            "build_date": settings.observability.build_date,
            "municipality": settings.municipality.name,
            "reference": list(settings.reference),
            "uptime_seconds": int(time.time() - start_time),
            "metrics_enabled": settings.observability.metrics_enabled,
            "inference_enabled": service.inference is not None,
            "log_level": settings.observability.log_level
        })
    
    @app.get("/reports")
    async def list_reports(zone: Optional[str] = None, severity: Optional[str] = None):
        """신고 목록 (구역/심각도 필터)"""
        try:
            z = parse_zone(zone) if zone else None
            s = _parse_severity(severity) if severity else None
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        records = await service.list_reports(zone=z, severity=s)
        return {"success": True, "count": len(records), "data": _dump(records)}
    
    @app.post("/reports", status_code=201)
    async def create_report(payload: NewReport):
        """수동 신고 제출"""
        try:
            record = await service.submit(payload)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return {"success": True, "id": record.id, "data": record.model_dump(mode="json")}
    
    @app.get("/reports/{report_id}")
    async def get_report(report_id: str):
        try:
            record = await service.get_report(report_id)
        except ReportNotFoundError:
            raise HTTPException(status_code=404, detail="Report not found")
        return {"success": True, "data": record.model_dump(mode="json")}
    
    @app.get("/stats")
    async def stats():
        """저장된 통계 문서 (주기 작업이 갱신)"""
        doc = await service.repo.get_statistics()
        if doc is None:
            return JSONResponse(
                status_code=404,
                content={"success": False, "message": "Statistics not available"}
            )
        return {"success": True, "data": doc.model_dump(mode="json")}
    
    @app.get("/stats/zones")
    async def stats_by_zone():
        """구역별 심각도 집계 (실시간)"""
        breakdown = await service.zone_breakdown()
        return {"success": True, "data": {z.value: b.model_dump() for z, b in breakdown.items()}}
    
    @app.get("/stats/live")
    async def stats_live():
        """현재 신고로 즉시 계산한 통계"""
        doc = await service.statistics()
        return {"success": True, "data": doc.model_dump(mode="json")}
    
    @app.get("/stats/weekly")
    async def stats_weekly():
        """저장된 주간 요약 (최신순)"""
        summaries = await service.weekly_summaries()
        return {"success": True, "count": len(summaries), "data": _dump(summaries)}
    
    @app.get("/geojson")
    async def geojson():
        return await service.export_geojson()
    
    @app.get("/zones/{zone}")
    async def reports_in_zone(zone: str):
        try:
            z = parse_zone(zone)
        except ValueError:
            raise HTTPException(status_code=404, detail=f"Unknown zone: {zone}")
        records = await service.list_reports(zone=z)
        return {"success": True, "zone": z.value, "count": len(records), "data": _dump(records)}
    
    @app.get("/classify")
    async def classify_point(lat: float = Query(...), lng: float = Query(...)):
        """좌표의 구역"""
        try:
            point = Coordinate(lat=lat, lng=lng)
        except ValidationError:
            raise HTTPException(status_code=400, detail="invalid coordinate")
        return {"zone": classify(point, settings.reference).value}
    
    @app.get("/estimate")
    async def estimate_point(lat: float, lng: float, position: str = "centro",
                             distance: str = "cerca", heading: float = 0.0):
        """사진 기준 상대 위치로 좌표 추정"""
        try:
            point = estimate(Coordinate(lat=lat, lng=lng), position, distance, heading)
        except (PolarLatitudeError, ValidationError) as e:
            raise HTTPException(status_code=400, detail=str(e))
        return {
            "lat": point.lat,
            "lng": point.lng,
            "zone": classify(point, settings.reference).value,
            "distance_m": round(distance_m(lat, lng, point.lat, point.lng), 2),
            "bearing_deg": round(initial_bearing(lat, lng, point.lat, point.lng), 1),
        }
    
    @app.post("/detections")
    async def analyze_photo(payload: PhotoAnalysisRequest):
        """사진 분석 → 확인 대기 후보 (저장하지 않음)"""
        if service.inference is None:
            raise HTTPException(status_code=503, detail="Inference disabled")
        try:
            image = decode_photo(payload.image)
            base = Coordinate(lat=payload.lat, lng=payload.lng)
            proposed = await service.analyze_photo(image, base, payload.heading, payload.mime_type)
        except InferenceError as e:
            raise HTTPException(status_code=502, detail=f"Inference failed: {e}")
        except (ValueError, ValidationError) as e:
            raise HTTPException(status_code=400, detail=str(e))
        return {"success": True, "count": len(proposed),
                "candidates": [c.model_dump(mode="json") for c in proposed]}
    
    @app.get("/candidates")
    async def list_candidates():
        """확인 대기 중인 후보"""
        pending = service.pending_candidates()
        return {"success": True, "count": len(pending), "data": _dump(pending)}
    
    @app.post("/candidates/{candidate_id}/confirm", status_code=201)
    async def confirm_candidate(candidate_id: str, payload: ConfirmRequest):
        try:
            record = await service.confirm_candidate(candidate_id, payload.street, payload.attach_photo)
        except CandidateNotFoundError:
            raise HTTPException(status_code=404, detail="Candidate not found")
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return {"success": True, "id": record.id, "data": record.model_dump(mode="json")}
    
    @app.delete("/candidates/{candidate_id}")
    async def discard_candidate(candidate_id: str):
        try:
            service.discard_candidate(candidate_id)
        except CandidateNotFoundError:
            raise HTTPException(status_code=404, detail="Candidate not found")
        return {"success": True}
    
    @app.post("/webhook/municipal")
    async def municipal_webhook(payload: dict = Body(default={}),
                                x_api_key: Optional[str] = Header(default=None)):
        """시청 시스템의 신고 상태 변경"""
        expected = settings.webhook.api_key
        if expected and x_api_key != expected:
            raise HTTPException(status_code=401, detail="Unauthorized")
        
        report_id = payload.get("report_id") or payload.get("reporteId")
        new_status = payload.get("status") or payload.get("nuevoEstado")
        if not report_id or not new_status:
            raise HTTPException(status_code=400, detail="Missing required parameters: report_id, status")
        
        try:
            status = _parse_status(str(new_status))
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        
        try:
            await service.update_status(str(report_id), status, settings.webhook.actor)
        except ReportNotFoundError:
            raise HTTPException(status_code=404, detail="Report not found")
        
        log.info(f"웹훅 상태 변경 report_id:{report_id} status:{status.value}")
        return {
            "success": True,
            "message": "Status updated",
            "report_id": report_id,
            "status": status.value
        }
    
    @app.get("/")
    async def root():
        """루트 엔드포인트"""
        return JSONResponse({
            "service": settings.observability.service_name,
            "version": settings.observability.build_version,
            "endpoints": {
                "health": "/health",
                "ready": "/ready",
                "metrics": "/metrics",
                "info": "/info",
                "reports": "/reports",
                "stats": "/stats",
                "weekly": "/stats/weekly",
                "candidates": "/candidates",
                "geojson": "/geojson",
                "zones": "/zones/{zone}",
                "detections": "/detections",
                "webhook": "/webhook/municipal"
            }
        })
    
    return app

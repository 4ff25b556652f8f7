"""
레거시 신고 JSON 내보내기를 SQLite로 가져오는 스크립트.

이전 문서 DB에서 내보낸 신고(ubicacion/severidad/estado/fecha/fotoURL 필드)를
SQLiteReportRepository로 옮깁니다. 구역은 좌표로 다시 계산합니다.
"""

import asyncio
import json
import sys
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List
from dateutil import parser
from roadwatch.adapters.storage.sqlite_reports import SQLiteReportRepository
from roadwatch.core.models import Coordinate, ReportRecord, ReportStatus
from roadwatch.core.normalize import map_severity
from roadwatch.core.zoning import MUNICIPAL_CENTER, PointLike, classify
from roadwatch.observability.logging_setup import get_logger

log = get_logger("roadwatch.migrate")


def _parse_date(raw: Any) -> datetime:
    if not raw:
        return datetime.now(timezone.utc)
    dt = parser.parse(str(raw))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _parse_status(raw: Any) -> ReportStatus:
    try:
        return ReportStatus(str(raw).strip().lower())
    except ValueError:
        log.warning(f"알 수 없는 상태, pendiente 사용: {raw}")
        return ReportStatus.PENDING


def legacy_to_record(doc: Dict[str, Any], reference: PointLike = MUNICIPAL_CENTER) -> ReportRecord:
    """
    레거시 문서 1건을 ReportRecord로 변환합니다.
    
    Raises:
        ValueError: 좌표 또는 위치(ubicacion)가 없는 문서
    """
    if doc.get("lat") is None or doc.get("lng") is None:
        raise ValueError("missing coordinate")
    street = str(doc.get("ubicacion") or "").strip()
    if not street:
        raise ValueError("missing ubicacion")
    
    location = Coordinate(lat=float(doc["lat"]), lng=float(doc["lng"]))
    zone = classify(location, reference)
    if doc.get("zona") and doc["zona"] != zone.value:
        log.warning(f"저장된 구역과 계산된 구역이 다름 id:{doc.get('id')} stored:{doc['zona']} computed:{zone.value}")
    
    created = _parse_date(doc.get("fecha"))
    return ReportRecord(
        id=str(doc.get("id") or uuid.uuid4().hex),
        location=location,
        zone=zone,
        street=street,
        description=str(doc.get("descripcion") or ""),
        severity=map_severity(doc.get("severidad")),
        photo_ref=doc.get("fotoURL") or None,
        auto_detected=False,
        created_at=created,
        updated_at=created,
        status=_parse_status(doc.get("estado", ReportStatus.PENDING.value)),
    )


def _load(json_path: str) -> List[Dict[str, Any]]:
    with open(json_path, "r", encoding="utf-8") as f:
        data = json.load(f)
    # {id: doc} 형식의 내보내기도 허용
    if isinstance(data, dict):
        return [{"id": k, **v} for k, v in data.items()]
    return list(data)


async def migrate(json_path: str, sqlite_path: str, reference: PointLike = MUNICIPAL_CENTER) -> bool:
    """
    레거시 JSON 파일을 SQLite로 마이그레이션합니다.
    
    Args:
        json_path: 레거시 JSON 파일 경로
        sqlite_path: SQLite 데이터베이스 파일 경로
        reference: 구역 분류 기준점
        
    Returns:
        에러 없이 끝났으면 True
    """
    if not Path(json_path).exists():
        log.error(f"JSON 파일이 존재하지 않습니다: {json_path}")
        return False
    
    repo = SQLiteReportRepository(sqlite_path)
    await repo.init()
    
    try:
        docs = _load(json_path)
        log.info(f"JSON 파일 로드 완료: {json_path}, 항목 수: {len(docs)}")
    except (OSError, ValueError) as e:
        log.error(f"JSON 파일 읽기 실패: {e}")
        return False
    
    count = 0
    skipped = 0
    errors = 0
    
    for doc in docs:
        try:
            record = legacy_to_record(doc, reference)
            if await repo.get(record.id) is not None:
                skipped += 1
                continue
            await repo.create(record)
            count += 1
        except (ValueError, TypeError) as e:
            log.error(f"문서 '{doc.get('id')}' 마이그레이션 실패: {e}")
            errors += 1
    
    log.info("마이그레이션 완료:")
    log.info(f"  - 성공: {count}개")
    log.info(f"  - 건너뜀 (이미 존재): {skipped}개")
    log.info(f"  - 에러: {errors}개")
    log.info(f"SQLite 저장소 최종 신고 수: {await repo.get_count()}")
    
    return errors == 0


async def main():
    """메인 함수"""
    if len(sys.argv) < 3:
        print("사용법: python -m migrations.import_legacy_reports <json_file> <sqlite_file>")
        print("예시: python -m migrations.import_legacy_reports /data/reportes.json /data/roadwatch.db")
        sys.exit(1)
    
    success = await migrate(sys.argv[1], sys.argv[2])
    if success:
        print("마이그레이션이 성공적으로 완료되었습니다.")
        sys.exit(0)
    print("마이그레이션 중 오류가 발생했습니다.")
    sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())

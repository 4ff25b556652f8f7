"""
레거시 신고 가져오기 스크립트 테스트
"""

import json

import pytest

from migrations.import_legacy_reports import legacy_to_record, migrate
from roadwatch.adapters.storage import SQLiteReportRepository
from roadwatch.core.models import ReportStatus, Severity, Zone

LEGACY_DOCS = [
    {
        "id": "abc123",
        "ubicacion": "Calle Libertad esq. Reforma",
        "lat": 16.3400,
        "lng": -96.5958,
        "descripcion": "bache profundo",
        "severidad": "alta",
        "zona": "Norte",
        "fecha": "2026-09-30T18:20:00.000Z",
        "estado": "en_revision",
        "fotoURL": "baches/1727720400000_abc123.jpg",
    },
    {
        "id": "def456",
        "ubicacion": "Av. Hidalgo",
        "lat": 16.3219,
        "lng": -96.5958,
        "severidad": "media",
        "fecha": "2026-10-01T10:00:00.000Z",
        "estado": "pendiente",
    },
]


class TestLegacyToRecord:
    """레거시 문서 변환 테스트"""

    def test_full_document(self):
        record = legacy_to_record(LEGACY_DOCS[0])
        assert record.id == "abc123"
        assert record.street == "Calle Libertad esq. Reforma"
        assert record.zone == Zone.NORTH
        assert record.severity == Severity.HIGH
        assert record.status == ReportStatus.UNDER_REVIEW
        assert record.photo_ref == "baches/1727720400000_abc123.jpg"
        assert record.created_at.tzinfo is not None
        assert record.auto_detected is False

    def test_zone_is_recomputed(self):
        doc = dict(LEGACY_DOCS[0], zona="Sur")
        assert legacy_to_record(doc).zone == Zone.NORTH

    def test_unknown_status_defaults_to_pending(self):
        doc = dict(LEGACY_DOCS[1], estado="archivado")
        assert legacy_to_record(doc).status == ReportStatus.PENDING

    def test_missing_coordinate_rejected(self):
        doc = {k: v for k, v in LEGACY_DOCS[1].items() if k != "lat"}
        with pytest.raises(ValueError):
            legacy_to_record(doc)

    def test_missing_street_rejected(self):
        with pytest.raises(ValueError):
            legacy_to_record(dict(LEGACY_DOCS[1], ubicacion="  "))


class TestMigrate:
    """마이그레이션 실행 테스트"""

    async def test_imports_and_skips_existing(self, tmp_path, temp_db_path):
        source = tmp_path / "reportes.json"
        source.write_text(json.dumps(LEGACY_DOCS), encoding="utf-8")

        assert await migrate(str(source), temp_db_path) is True
        assert await migrate(str(source), temp_db_path) is True

        repo = SQLiteReportRepository(temp_db_path)
        assert await repo.get_count() == 2
        assert (await repo.get("def456")).zone == Zone.CENTER

    async def test_id_keyed_export(self, tmp_path, temp_db_path):
        source = tmp_path / "reportes.json"
        keyed = {doc["id"]: {k: v for k, v in doc.items() if k != "id"} for doc in LEGACY_DOCS}
        source.write_text(json.dumps(keyed), encoding="utf-8")

        assert await migrate(str(source), temp_db_path) is True
        assert await SQLiteReportRepository(temp_db_path).get("abc123") is not None

    async def test_bad_document_reports_error(self, tmp_path, temp_db_path):
        source = tmp_path / "reportes.json"
        source.write_text(json.dumps([LEGACY_DOCS[1], {"id": "x", "ubicacion": "Calle"}]), encoding="utf-8")

        assert await migrate(str(source), temp_db_path) is False
        assert await SQLiteReportRepository(temp_db_path).get_count() == 1

    async def test_missing_file(self, tmp_path, temp_db_path):
        assert await migrate(str(tmp_path / "nope.json"), temp_db_path) is False

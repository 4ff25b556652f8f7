"""
통계 / 주간 요약 / GeoJSON 테스트
"""

from datetime import timedelta

from roadwatch.core.geojson import to_feature_collection
from roadwatch.core.models import ReportStatus, Severity, Zone
from roadwatch.core.stats import compute_statistics, weekly_summary, zone_breakdown


class TestStatistics:
    """compute_statistics / zone_breakdown 테스트"""

    def test_empty(self, fixed_now):
        stats = compute_statistics([], fixed_now)
        assert stats.total == 0
        assert set(stats.by_zone) == set(Zone)
        assert all(v == 0 for v in stats.by_zone.values())
        assert stats.by_status[ReportStatus.RESOLVED] == 0

    def test_counts(self, make_record, fixed_now):
        records = [
            make_record(severity=Severity.HIGH),
            make_record(lat=16.34, severity=Severity.HIGH, status=ReportStatus.RESOLVED),
            make_record(lat=16.30, severity=Severity.LOW, status=ReportStatus.UNDER_REVIEW),
        ]
        stats = compute_statistics(records, fixed_now)
        assert stats.total == 3
        assert stats.by_severity[Severity.HIGH] == 2
        assert stats.by_severity[Severity.MEDIUM] == 0
        assert stats.by_zone[Zone.CENTER] == 1
        assert stats.by_zone[Zone.NORTH] == 1
        assert stats.by_zone[Zone.SOUTH] == 1
        assert stats.by_status[ReportStatus.PENDING] == 1
        assert stats.updated_at == fixed_now

    def test_zone_breakdown(self, make_record):
        records = [
            make_record(severity=Severity.HIGH),
            make_record(severity=Severity.LOW),
            make_record(lng=-96.57, severity=Severity.MEDIUM),
        ]
        breakdown = zone_breakdown(records)
        assert breakdown[Zone.CENTER].total == 2
        assert breakdown[Zone.CENTER].alta == 1
        assert breakdown[Zone.CENTER].baja == 1
        assert breakdown[Zone.EAST].media == 1
        assert breakdown[Zone.WEST].total == 0


class TestWeeklySummary:
    """weekly_summary 테스트"""

    def test_only_recent_records(self, make_record, fixed_now):
        records = [
            make_record(age_days=1),
            make_record(age_days=3, lat=16.34),
            make_record(age_days=10, lat=16.34),
        ]
        summary = weekly_summary(records, fixed_now)
        assert summary.total == 2
        assert summary.period_start == fixed_now - timedelta(days=7)
        assert summary.period_end == fixed_now

    def test_most_affected_order(self, make_record, fixed_now):
        records = [
            make_record(lat=16.30),
            make_record(lat=16.34),
            make_record(lat=16.34),
            make_record(),
        ]
        summary = weekly_summary(records, fixed_now)
        assert summary.most_affected_zones == [(Zone.NORTH, 2), (Zone.CENTER, 1), (Zone.SOUTH, 1)]


class TestGeoJSON:
    """GeoJSON 내보내기 테스트"""

    def test_feature_collection(self, make_record):
        record = make_record(lat=16.33, lng=-96.60, photo_ref="baches/1_r.jpg")
        fc = to_feature_collection([record])
        assert fc["type"] == "FeatureCollection"
        [feature] = fc["features"]
        assert feature["geometry"] == {"type": "Point", "coordinates": [-96.60, 16.33]}
        props = feature["properties"]
        assert props["id"] == record.id
        assert props["severity"] == "media"
        assert props["zone"] == record.zone.value
        assert props["status"] == "pendiente"
        assert props["photo_ref"] == "baches/1_r.jpg"

    def test_missing_photo_is_null(self, make_record):
        fc = to_feature_collection([make_record()])
        assert fc["features"][0]["properties"]["photo_ref"] is None

    def test_empty(self):
        assert to_feature_collection([]) == {"type": "FeatureCollection", "features": []}

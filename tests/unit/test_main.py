"""
애플리케이션 설정 로드 테스트
"""

from datetime import timedelta

from roadwatch.main import _b, build_settings, resolve_timezone


class TestBuildSettings:
    """환경 변수 설정 오버레이 테스트"""

    def test_defaults(self, monkeypatch):
        for key in ("CENTER_LAT", "CENTER_LNG", "NOTIFY_ENABLED", "WEBHOOK_API_KEY"):
            monkeypatch.delenv(key, raising=False)
        s = build_settings()
        assert s.reference == (16.3219, -96.5958)
        assert s.notify.enabled is False
        assert s.webhook.api_key == ""
        assert s.webhook.actor == "sistema_municipal"

    def test_env_overlay(self, monkeypatch):
        monkeypatch.setenv("CENTER_LAT", "17.0")
        monkeypatch.setenv("NOTIFY_ENABLED", "yes")
        monkeypatch.setenv("MQTT_PORT", "8883")
        monkeypatch.setenv("WEBHOOK_API_KEY", "secreto")
        monkeypatch.setenv("CANDIDATE_TTL_SEC", "60")

        s = build_settings()

        assert s.municipality.center_lat == 17.0
        assert s.notify.enabled is True
        assert s.notify.port == 8883
        assert s.webhook.api_key == "secreto"
        assert s.reliability.candidate_ttl_sec == 60

    def test_bool_parsing(self, monkeypatch):
        monkeypatch.setenv("FLAG", "On")
        assert _b("FLAG") is True
        monkeypatch.setenv("FLAG", "0")
        assert _b("FLAG", True) is False
        monkeypatch.delenv("FLAG")
        assert _b("FLAG", True) is True


class TestResolveTimezone:
    """시간대 해석 테스트"""

    def test_unknown_falls_back_to_utc_minus_six(self):
        tz = resolve_timezone("Nowhere/Atlantis")
        assert tz.utcoffset(None) == timedelta(hours=-6)

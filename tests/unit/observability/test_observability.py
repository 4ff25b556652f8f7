"""
Observability 모듈 단위 테스트

이 모듈은 메트릭, 로깅, 서버 구성 등의 관찰 가능성 기능을 테스트합니다.
"""

import time
from unittest.mock import Mock, patch

import pytest

from roadwatch.observability.logging_setup import (
    InterceptHandler, get_logger, setup_logging_dev, with_context
)
from roadwatch.observability.metrics import (
    candidates_proposed, candidates_resolved, classify_seconds, inference_seconds,
    job_runs, notifications_sent, outbox_size, pending_candidates, reports_created,
    status_updates, uptime_seconds
)
from roadwatch.observability.server import build_server


class TestMetricsCollection:
    """메트릭 수집 테스트"""

    def test_reports_created_counter(self):
        """신고 생성 카운터 테스트"""
        reports_created.clear()

        reports_created.labels(zone="Norte", severity="alta", source="manual").inc()
        reports_created.labels(zone="Norte", severity="alta", source="manual").inc(2)
        reports_created.labels(zone="Sur", severity="baja", source="auto").inc()

        assert reports_created.labels(zone="Norte", severity="alta", source="manual")._value._value == 3
        assert reports_created.labels(zone="Sur", severity="baja", source="auto")._value._value == 1

    def test_status_updates_counter(self):
        """상태 변경 카운터 테스트"""
        status_updates.clear()
        status_updates.labels(status="resuelto").inc()
        assert status_updates.labels(status="resuelto")._value._value == 1

    def test_candidate_counters(self):
        """후보 카운터 테스트"""
        before = candidates_proposed._value._value
        candidates_proposed.inc(3)
        assert candidates_proposed._value._value == before + 3

        candidates_resolved.clear()
        candidates_resolved.labels(outcome="confirmed").inc()
        candidates_resolved.labels(outcome="discarded").inc(2)
        assert candidates_resolved.labels(outcome="discarded")._value._value == 2

    def test_notification_and_job_counters(self):
        """알림/작업 카운터 테스트"""
        notifications_sent.clear()
        job_runs.clear()

        notifications_sent.labels(topic="roadwatch/reports/new").inc()
        job_runs.labels(job="refresh_statistics", result="ok").inc()
        job_runs.labels(job="refresh_statistics", result="error").inc()

        assert notifications_sent.labels(topic="roadwatch/reports/new")._value._value == 1
        assert job_runs.labels(job="refresh_statistics", result="error")._value._value == 1

    def test_gauges(self):
        """게이지 테스트"""
        pending_candidates.set(4)
        pending_candidates.dec(1)
        outbox_size.set(10)
        uptime_seconds.set(3600)

        assert pending_candidates._value._value == 3
        assert outbox_size._value._value == 10
        assert uptime_seconds._value._value == 3600

    def test_histogram_context_manager(self):
        """히스토그램 컨텍스트 매니저 테스트"""
        before = classify_seconds._sum._value
        with classify_seconds.time():
            time.sleep(0.01)
        assert classify_seconds._sum._value - before >= 0.01

    def test_inference_histogram_observe(self):
        before = inference_seconds._sum._value
        inference_seconds.observe(0.25)
        assert inference_seconds._sum._value - before == pytest.approx(0.25)


class TestLoggingSetup:
    """로깅 설정 테스트"""

    def test_intercept_handler_emit(self):
        """InterceptHandler emit 테스트"""
        handler = InterceptHandler()

        record = Mock()
        record.levelname = "INFO"
        record.levelno = 20
        record.getMessage.return_value = "Test message"
        record.exc_info = None

        with patch('roadwatch.observability.logging_setup.logger') as mock_logger:
            handler.emit(record)

            mock_logger.opt.assert_called_once()
            mock_logger.opt.return_value.log.assert_called_once()

    def test_intercept_handler_unknown_level(self):
        """알 수 없는 레벨은 숫자 레벨로 전달"""
        handler = InterceptHandler()

        record = Mock()
        record.levelname = "CUSTOM"
        record.levelno = 25
        record.getMessage.return_value = "Custom message"
        record.exc_info = None

        with patch('roadwatch.observability.logging_setup.logger') as mock_logger:
            mock_logger.level.side_effect = ValueError("unknown level")
            handler.emit(record)

            mock_logger.opt.return_value.log.assert_called_once_with(25, "Custom message")

    def test_get_logger_binds_context(self):
        """컨텍스트 바인딩 테스트"""
        with patch('roadwatch.observability.logging_setup.logger') as mock_logger:
            get_logger("roadwatch.test", report_id="r1")
            mock_logger.bind.assert_called_once_with(name="roadwatch.test", report_id="r1")

    def test_with_context(self):
        with patch('roadwatch.observability.logging_setup.logger') as mock_logger:
            with_context(zone="Norte")
            mock_logger.contextualize.assert_called_once_with(zone="Norte")

    def test_setup_logging_dev(self):
        """개발 로깅 설정 테스트"""
        with patch('roadwatch.observability.logging_setup.logger') as mock_logger:
            with patch('roadwatch.observability.logging_setup._hook_stdlib_logging') as mock_hook:
                setup_logging_dev("debug")

                mock_logger.remove.assert_called_once()
                assert mock_logger.add.call_args.kwargs["level"] == "DEBUG"
                mock_hook.assert_called_once()


class TestServer:
    """HTTP 서버 구성 테스트"""

    def test_build_server(self, sample_settings):
        sample_settings.observability.http_port = 9090
        app = Mock()
        with patch('roadwatch.observability.server.uvicorn') as mock_uvicorn:
            build_server(app, sample_settings)

            config_kwargs = mock_uvicorn.Config.call_args.kwargs
            assert mock_uvicorn.Config.call_args.args[0] is app
            assert config_kwargs["port"] == 9090
            assert config_kwargs["log_level"] == "info"
            mock_uvicorn.Server.assert_called_once_with(mock_uvicorn.Config.return_value)

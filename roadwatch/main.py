# roadwatch/main.py
import os, asyncio, signal
from contextlib import AsyncExitStack
from datetime import timedelta, timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
from roadwatch.settings import Settings
from roadwatch.core.models import Coordinate
from roadwatch.adapters.storage import SQLiteReportRepository, FilePhotoStore, SQLiteOutbox
from roadwatch.adapters.inference.client import InferenceClient
from roadwatch.adapters.notify.mqtt_notifier import MqttReportNotifier
from roadwatch.services import ReportService, JobScheduler
from roadwatch.observability.api import create_app
from roadwatch.observability.server import build_server
from roadwatch.observability.logging_setup import setup_logging_dev, get_logger

def _b(name, default=False): return os.getenv(name, str(default)).lower() in ("1","true","yes","on")

def build_settings() -> Settings:
    s = Settings()

    # 기준점
    s.municipality.center_lat = float(os.getenv("CENTER_LAT", s.municipality.center_lat))
    s.municipality.center_lng = float(os.getenv("CENTER_LNG", s.municipality.center_lng))
    s.municipality.timezone = os.getenv("TIMEZONE", s.municipality.timezone)

    # 저장소
    s.storage.db_path = os.getenv("DB_PATH", s.storage.db_path)
    s.storage.photo_root = os.getenv("PHOTO_ROOT", s.storage.photo_root)

    # 추론
    s.inference.enabled = _b("INFERENCE_ENABLED", s.inference.enabled)
    s.inference.base_url = os.getenv("INFERENCE_BASE_URL", s.inference.base_url)
    s.inference.api_key = os.getenv("INFERENCE_API_KEY", s.inference.api_key)
    s.inference.timeout_sec = int(os.getenv("INFERENCE_TIMEOUT_SEC", s.inference.timeout_sec))
    s.inference.max_retries = int(os.getenv("INFERENCE_MAX_RETRIES", s.inference.max_retries))

    # 알림 MQTT
    s.notify.enabled = _b("NOTIFY_ENABLED", s.notify.enabled)
    s.notify.host = os.getenv("MQTT_HOST", s.notify.host)
    s.notify.port = int(os.getenv("MQTT_PORT", s.notify.port))
    s.notify.username = os.getenv("MQTT_USERNAME", s.notify.username)
    s.notify.password = os.getenv("MQTT_PASSWORD", s.notify.password)
    s.notify.tls = _b("MQTT_TLS", s.notify.tls)
    s.notify.topic_prefix = os.getenv("MQTT_TOPIC_PREFIX", s.notify.topic_prefix)

    # 웹훅
    s.webhook.api_key = os.getenv("WEBHOOK_API_KEY", s.webhook.api_key)

    # 주기 작업
    s.jobs.enabled = _b("JOBS_ENABLED", s.jobs.enabled)
    s.jobs.stats_interval_sec = int(os.getenv("STATS_INTERVAL_SEC", s.jobs.stats_interval_sec))
    s.jobs.cleanup_interval_sec = int(os.getenv("CLEANUP_INTERVAL_SEC", s.jobs.cleanup_interval_sec))
    s.jobs.photo_grace_sec = int(os.getenv("PHOTO_GRACE_SEC", s.jobs.photo_grace_sec))

    # 관측성
    s.observability.metrics_enabled = _b("METRICS_ENABLED", s.observability.metrics_enabled)
    s.observability.http_port = int(os.getenv("HTTP_PORT", s.observability.http_port))
    s.observability.log_level = os.getenv("LOG_LEVEL", s.observability.log_level)

    # 신뢰성
    s.reliability.outbox_path = os.getenv("OUTBOX_PATH", s.reliability.outbox_path)
    s.reliability.candidate_ttl_sec = int(os.getenv("CANDIDATE_TTL_SEC", s.reliability.candidate_ttl_sec))

    return s

def resolve_timezone(name: str) -> tzinfo:
    """시간대 이름을 해석합니다. tz 데이터가 없으면 UTC-6 고정."""
    try:
        return ZoneInfo(name)
    except ZoneInfoNotFoundError:
        get_logger().warning(f"시간대 데이터 없음, UTC-6 사용: {name}")
        return timezone(timedelta(hours=-6))

async def main():
    s = build_settings()
    setup_logging_dev(s.observability.log_level)
    log = get_logger()
    log.info("설정 로드 완료")

    reference = Coordinate(lat=s.municipality.center_lat, lng=s.municipality.center_lng)

    repo = SQLiteReportRepository(s.storage.db_path); await repo.init()
    photos = FilePhotoStore(s.storage.photo_root, s.storage.photo_prefix)

    async with AsyncExitStack() as stack:
        inference = None
        if s.inference.enabled:
            inference = await stack.enter_async_context(InferenceClient(
                s.inference.base_url,
                s.inference.api_key,
                prompt=s.inference.prompt,
                timeout=s.inference.timeout_sec,
                max_retries=s.inference.max_retries,
            ))
            log.info("추론 클라이언트 생성 완료")

        notifier = None
        tasks = []
        if s.notify.enabled:
            outbox = SQLiteOutbox(s.reliability.outbox_path); await outbox.init()
            notifier = MqttReportNotifier(
                broker_host=s.notify.host,
                broker_port=s.notify.port,
                topic_prefix=s.notify.topic_prefix,
                outbox=outbox,
                username=s.notify.username,
                password=s.notify.password,
                tls=s.notify.tls,
                client_id=s.notify.client_id,
                keepalive=s.notify.keepalive,
                lwt_topic=s.notify.lwt_topic,
                qos=s.notify.qos,
                alert_min_severity=s.notify.alert_min_severity,
                backoff_initial=s.reliability.backoff_initial_sec,
                backoff_max=s.reliability.backoff_max_sec,
                max_retries=s.reliability.publish_max_retries,
            )
            tasks.append(asyncio.create_task(notifier.start()))
            log.info("MQTT 알림 발송기 시작")

        service = ReportService(
            repo, photos,
            inference=inference,
            notifier=notifier,
            reference=reference,
            candidate_ttl_sec=s.reliability.candidate_ttl_sec,
        )

        scheduler = None
        if s.jobs.enabled:
            scheduler = JobScheduler(
                repo, photos,
                tz=resolve_timezone(s.municipality.timezone),
                stats_interval_sec=s.jobs.stats_interval_sec,
                cleanup_interval_sec=s.jobs.cleanup_interval_sec,
                weekly_weekday=s.jobs.weekly_weekday,
                weekly_hour=s.jobs.weekly_hour,
                weekly_days=s.jobs.weekly_days,
                photo_grace_sec=s.jobs.photo_grace_sec,
            )
            scheduler.start()

        server = build_server(create_app(s, service), s)
        tasks.append(asyncio.create_task(server.serve()))

        stop = asyncio.Future()
        try:
            loop = asyncio.get_running_loop()
            for sig in (signal.SIGTERM, signal.SIGINT):
                try: loop.add_signal_handler(sig, lambda: (not stop.done()) and stop.set_result(True))
                except NotImplementedError: pass
        except RuntimeError: pass

        log.info("서비스 시작")
        await stop

        server.should_exit = True
        if notifier: await notifier.stop()
        if scheduler: await scheduler.stop()
        for t in tasks: t.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        log.info("서비스 종료")

def run():
    asyncio.run(main())

if __name__ == "__main__":
    run()

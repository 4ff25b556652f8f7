"""
MQTT notifier for RoadWatch.

New reports are queued in the SQLite outbox and published to the
local broker by a background worker. Reports at or above the alert
severity also go to an alert topic.
"""

import asyncio
import json
import ssl
from aiomqtt import Client, MqttError, Will
from roadwatch.adapters.storage.sqlite_outbox import SQLiteOutbox
from roadwatch.common.retry import exponential_backoff
from roadwatch.core.models import SEVERITY_ORDER, ReportRecord, Severity
from roadwatch.observability import metrics
from roadwatch.observability.logging_setup import get_logger

log = get_logger("roadwatch.notify")

class MqttReportNotifier:
    """신고 알림 MQTT 발송 어댑터 (Outbox 패턴)"""
    
    def __init__(self,
                 *,
                 broker_host: str,
                 broker_port: int,
                 topic_prefix: str,
                 outbox: SQLiteOutbox,
                 username: str | None = None,
                 password: str | None = None,
                 tls: bool = False,
                 client_id: str | None = None,
                 keepalive: int = 30,
                 lwt_topic: str = "roadwatch/state",
                 qos: int = 1,
                 alert_min_severity: Severity = Severity.HIGH,
                 backoff_initial: float = 0.5,
                 backoff_max: float = 30.0,
                 max_retries: int = 10,
                 poll_interval: float = 1.0):
        """
        초기화합니다.
        
        Args:
            broker_host: MQTT 브로커 호스트
            broker_port: MQTT 브로커 포트
            topic_prefix: 토픽 접두사
            outbox: Outbox 인스턴스
            username: 사용자명
            password: 비밀번호
            tls: TLS 사용 여부
            client_id: 클라이언트 ID
            keepalive: keepalive 시간
            lwt_topic: Last Will 토픽
            qos: 발송 QoS
            alert_min_severity: 경보 토픽 발송 최소 심각도
            backoff_initial: 초기 백오프 시간
            backoff_max: 최대 백오프 시간
            max_retries: 항목당 최대 재시도 횟수
            poll_interval: Outbox 폴링 간격 (초)
        """
        self.broker_host = broker_host
        self.broker_port = broker_port
        self.topic_prefix = topic_prefix.rstrip("/")
        self.outbox = outbox
        self.username = username
        self.password = password
        self.tls = tls
        self.client_id = client_id
        self.keepalive = keepalive
        self.lwt_topic = lwt_topic
        self.qos = qos
        self.alert_min_severity = alert_min_severity
        self.backoff_initial = backoff_initial
        self.backoff_max = backoff_max
        self.max_retries = max_retries
        self.poll_interval = poll_interval
        
        self.client: Client | None = None
        self._running = False
    
    @staticmethod
    def build_payload(record: ReportRecord) -> dict:
        """알림 페이로드"""
        return {
            "id": record.id,
            "street": record.street,
            "lat": record.location.lat,
            "lng": record.location.lng,
            "zone": record.zone.value,
            "severity": record.severity.value,
            "auto_detected": record.auto_detected,
            "created_at": record.created_at.isoformat(),
        }
    
    async def notify_new_report(self, record: ReportRecord) -> None:
        """새 신고를 Outbox에 추가합니다. 기준 이상 심각도는 경보 토픽에도 추가합니다."""
        payload = self.build_payload(record)
        await self.enqueue_json("reports/new", payload)
        if SEVERITY_ORDER[record.severity] >= SEVERITY_ORDER[self.alert_min_severity]:
            await self.enqueue_json(f"reports/alerts/{record.severity.value}", payload)
            log.warning(f"경보 대상 신고 id:{record.id} street:{record.street}")
    
    async def enqueue_json(self, topic_suffix: str, payload_obj: dict) -> int:
        topic = f"{self.topic_prefix}/{topic_suffix}"
        payload = json.dumps(payload_obj, ensure_ascii=False).encode("utf-8")
        oid = await self.outbox.enqueue(topic, payload, self.qos)
        metrics.outbox_size.set(await self.outbox.get_count())
        return oid
    
    def _client(self) -> Client:
        return Client(
            hostname=self.broker_host,
            port=self.broker_port,
            username=self.username,
            password=self.password,
            identifier=self.client_id,
            keepalive=self.keepalive,
            will=Will(topic=self.lwt_topic, payload="offline", qos=1, retain=True),
            tls_context=ssl.create_default_context() if self.tls else None,
        )
    
    async def start(self) -> None:
        """브로커에 연결해 Outbox를 계속 비웁니다."""
        self._running = True
        attempt = 0
        while self._running:
            try:
                async with self._client() as client:
                    self.client = client
                    attempt = 0
                    await client.publish(self.lwt_topic, "online", qos=1, retain=True)
                    log.info(f"MQTT 브로커 연결됨: {self.broker_host}:{self.broker_port}")
                    while self._running:
                        drained = await self.process_once()
                        if not drained:
                            await asyncio.sleep(self.poll_interval)
            except MqttError as e:
                attempt += 1
                self.client = None
                log.error(f"MQTT 연결 오류: {e}")
                await exponential_backoff(attempt, self.backoff_initial, self.backoff_max)
    
    async def process_once(self) -> bool:
        """
        Outbox 항목 1건을 처리합니다.
        
        Returns:
            항목을 처리했으면 True, Outbox가 비어 있으면 False
        """
        item = await self.outbox.peek_oldest()
        if not item:
            return False
        
        if item.attempts >= self.max_retries:
            log.warning(f"최대 재시도 횟수 초과, 항목 삭제: {item.id}")
            await self.outbox.delete(item.id)
            return True
        
        try:
            await self.client.publish(item.topic, item.payload, qos=item.qos)
        except MqttError as e:
            log.error(f"알림 발송 실패: id:{item.id} topic:{item.topic} error:{e}")
            await self.outbox.mark_attempt(item.id)
            await exponential_backoff(item.attempts + 1, self.backoff_initial, self.backoff_max)
            raise
        
        await self.outbox.delete(item.id)
        metrics.notifications_sent.labels(topic=item.topic).inc()
        metrics.outbox_size.set(await self.outbox.get_count())
        log.info(f"알림 발송 성공: id:{item.id} topic:{item.topic}")
        return True
    
    async def stop(self) -> None:
        """발송을 중지합니다."""
        self._running = False

# roadwatch/settings.py
from __future__ import annotations
from pydantic import BaseModel, Field
from roadwatch.core.models import Severity

class Municipality(BaseModel):
    name: str = "Miahuatlán de Porfirio Díaz, Oaxaca"
    center_lat: float = 16.3219
    center_lng: float = -96.5958
    timezone: str = "America/Mexico_City"

class Storage(BaseModel):
    db_path: str = "/data/roadwatch.db"
    photo_root: str = "/data/photos"
    photo_prefix: str = "baches"

class Inference(BaseModel):
    enabled: bool = True
    base_url: str = "http://localhost:8500"
    api_key: str = ""
    timeout_sec: int = 30
    max_retries: int = 2
    prompt: str = (
        "Detect road potholes in the photo. For each one return severity "
        "(baja|media|alta), position (centro|izquierda|derecha|arriba|abajo), "
        "distance (cerca|medio|lejos), confidence 0..1 and a short description."
    )

class Notify(BaseModel):
    enabled: bool = False
    host: str = "localhost"
    port: int = 1883
    username: str | None = None
    password: str | None = None
    tls: bool = False
    client_id: str | None = None
    keepalive: int = 30
    topic_prefix: str = "roadwatch"
    qos: int = 1
    lwt_topic: str = "roadwatch/state"
    alert_min_severity: Severity = Severity.HIGH

class Webhook(BaseModel):
    api_key: str = ""                         # 비어 있으면 검증 생략
    actor: str = "sistema_municipal"

class Jobs(BaseModel):
    enabled: bool = True
    stats_interval_sec: int = 3600
    cleanup_interval_sec: int = 86400
    weekly_weekday: int = 0                   # 0=월요일
    weekly_hour: int = 9
    weekly_days: int = 7
    photo_grace_sec: int = 3600               # 이보다 새 사진은 정리 대상 제외

class Observability(BaseModel):
    http_host: str = "0.0.0.0"
    http_port: int = 8080
    metrics_enabled: bool = True
    service_name: str = "RoadWatch"
    build_version: str = "0.2.0"
    build_date: str = "2026-10-01"
    log_level: str = "INFO"

class Reliability(BaseModel):
    outbox_path: str = "/data/outbox.db"
    publish_max_retries: int = 10
    backoff_initial_sec: float = 0.5
    backoff_max_sec: float = 30.0
    candidate_ttl_sec: int = 3600

class Settings(BaseModel):
    municipality: Municipality = Field(default_factory=Municipality)
    storage: Storage = Field(default_factory=Storage)
    inference: Inference = Field(default_factory=Inference)
    notify: Notify = Field(default_factory=Notify)
    webhook: Webhook = Field(default_factory=Webhook)
    jobs: Jobs = Field(default_factory=Jobs)
    observability: Observability = Field(default_factory=Observability)
    reliability: Reliability = Field(default_factory=Reliability)

    @property
    def reference(self) -> tuple[float, float]:
        """구역 분류 기준점 (위도, 경도)"""
        return (self.municipality.center_lat, self.municipality.center_lng)

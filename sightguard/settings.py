# sightguard/settings.py
from __future__ import annotations
from pydantic import BaseModel, Field, field_validator, model_validator

class Tracking(BaseModel):
    ghost_min: int = Field(default=3, ge=0)
    ghost_max: int = Field(default=7, ge=0)
    confidence_threshold: int = Field(default=60, ge=0, le=100)

    @model_validator(mode="after")
    def _check_ghost_range(self) -> "Tracking":
        if self.ghost_min > self.ghost_max:
            raise ValueError(f"ghost_min({self.ghost_min}) > ghost_max({self.ghost_max})")
        return self

class Retention(BaseModel):
    enabled: bool = True
    observation_max_age_days: int = Field(default=30, ge=1)
    notification_max_age_days: int = Field(default=30, ge=1)
    observation_run_at: str = "02:00"         # HH:MM (UTC)
    notification_run_at: str = "03:00"        # HH:MM (UTC)

    @field_validator("observation_run_at", "notification_run_at")
    @classmethod
    def _check_hhmm(cls, v: str) -> str:
        hh, _, mm = v.partition(":")
        if not (hh.isdigit() and mm.isdigit() and 0 <= int(hh) < 24 and 0 <= int(mm) < 60):
            raise ValueError(f"HH:MM 형식이 아닙니다: {v}")
        return v

class Geocoder(BaseModel):
    base_url: str = "https://nominatim.openstreetmap.org"
    user_agent: str = "SightGuardTracking"
    timeout_sec: float = 5.0
    max_retries: int = 1
    fallback_text: str = "Unknown location"

class Validation(BaseModel):
    hmac_secret: str = ""
    max_clock_skew_sec: int = 300

class Storage(BaseModel):
    db_path: str = "/data/sightguard.db"

class Reliability(BaseModel):
    queue_maxsize: int = 1000
    drop_on_full: bool = False
    backoff_initial_sec: float = 0.2
    backoff_max_sec: float = 1.0

class Observability(BaseModel):
    http_port: int = 8099
    admin_host: str = "127.0.0.1"
    admin_port: int = 8100
    metrics_enabled: bool = True
    service_name: str = "SightGuard"
    build_version: str = "0.1.0"
    build_date: str = "2026-01-01"
    log_level: str = "INFO"
    log_json: bool = False

class Settings(BaseModel):
    # 하위 섹션 (기본값/팩토리로 누락 방지)
    tracking: Tracking = Field(default_factory=Tracking)
    retention: Retention = Field(default_factory=Retention)
    geocoder: Geocoder = Field(default_factory=Geocoder)
    validation: Validation = Field(default_factory=Validation)
    storage: Storage = Field(default_factory=Storage)
    reliability: Reliability = Field(default_factory=Reliability)
    observability: Observability = Field(default_factory=Observability)

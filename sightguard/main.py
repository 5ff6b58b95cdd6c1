# sightguard/main.py
import os, asyncio, signal
from typing import List, Optional
import uvicorn
from sightguard.settings import Settings
from sightguard.api import Services, create_admin_app, create_app
from sightguard.observability.logging_setup import setup_logging, get_logger
from sightguard.adapters.storage.sqlite_tracking import SQLiteTrackingStore
from sightguard.adapters.storage.sqlite_notifications import SQLiteNotificationStore
from sightguard.adapters.geocoding.nominatim import NominatimGeocoder
from sightguard.core.validation import ReportValidator
from sightguard.features.alerts import AlertDispatcher
from sightguard.features.ghosts import GhostObservationGenerator
from sightguard.features.recorder import ObservationRecorder
from sightguard.features.resolver import DeviceStatusResolver
from sightguard.features.retention import DailySchedule, RetentionJanitor, RetentionScheduler
from sightguard.features.stats import ObservationStatsAggregator
from sightguard.orchestrators.orchestrator import ReportOrchestrator

def _b(name, default=False): return os.getenv(name, str(default)).lower() in ("1","true","yes","on")

def build_settings() -> Settings:
    s = Settings()

    # 추적
    s.tracking.ghost_min = int(os.getenv("GHOST_MIN", s.tracking.ghost_min))
    s.tracking.ghost_max = int(os.getenv("GHOST_MAX", s.tracking.ghost_max))
    s.tracking.confidence_threshold = int(os.getenv("CONFIDENCE_THRESHOLD", s.tracking.confidence_threshold))

    # 보존
    s.retention.enabled = _b("RETENTION_ENABLED", s.retention.enabled)
    s.retention.observation_max_age_days = int(os.getenv("OBSERVATION_MAX_AGE_DAYS", s.retention.observation_max_age_days))
    s.retention.notification_max_age_days = int(os.getenv("NOTIFICATION_MAX_AGE_DAYS", s.retention.notification_max_age_days))
    s.retention.observation_run_at = os.getenv("RETENTION_RUN_AT", s.retention.observation_run_at)
    s.retention.notification_run_at = os.getenv("NOTIFICATION_CLEANUP_RUN_AT", s.retention.notification_run_at)

    # 역지오코딩
    s.geocoder.base_url = os.getenv("GEOCODER_URL", s.geocoder.base_url)
    s.geocoder.user_agent = os.getenv("GEOCODER_USER_AGENT", s.geocoder.user_agent)
    s.geocoder.timeout_sec = float(os.getenv("GEOCODER_TIMEOUT_SEC", s.geocoder.timeout_sec))

    # 검증
    s.validation.hmac_secret = os.getenv("REPORT_HMAC_SECRET", s.validation.hmac_secret)
    s.validation.max_clock_skew_sec = int(os.getenv("MAX_CLOCK_SKEW_SEC", s.validation.max_clock_skew_sec))

    # 저장소 / 신뢰성
    s.storage.db_path = os.getenv("DB_PATH", s.storage.db_path)
    s.reliability.queue_maxsize = int(os.getenv("QUEUE_MAXSIZE", s.reliability.queue_maxsize))
    s.reliability.drop_on_full = _b("DROP_ON_FULL", s.reliability.drop_on_full)

    # 관측성
    s.observability.metrics_enabled = _b("METRICS_ENABLED", s.observability.metrics_enabled)
    s.observability.http_port = int(os.getenv("HTTP_PORT", s.observability.http_port))
    s.observability.admin_host = os.getenv("ADMIN_HOST", s.observability.admin_host)
    s.observability.admin_port = int(os.getenv("ADMIN_PORT", s.observability.admin_port))
    s.observability.log_level = os.getenv("LOG_LEVEL", s.observability.log_level)
    s.observability.log_json = _b("LOG_JSON", s.observability.log_json)

    # 섹션 검증 재실행 (ghost_min <= ghost_max 등)
    return Settings.model_validate(s.model_dump())

def build_services(s: Settings,
                   store: SQLiteTrackingStore,
                   notifications: SQLiteNotificationStore,
                   geocoder,
                   *,
                   inline: bool = False) -> Services:
    """설정에 따라 파이프라인 구성요소를 조립합니다."""
    validator = ReportValidator(
        s.validation.hmac_secret,
        max_clock_skew_sec=s.validation.max_clock_skew_sec,
        max_age_days=s.retention.observation_max_age_days,
    )
    orch = ReportOrchestrator(
        validator,
        DeviceStatusResolver(store, store),
        ObservationRecorder(store),
        GhostObservationGenerator(ghost_min=s.tracking.ghost_min, ghost_max=s.tracking.ghost_max),
        AlertDispatcher(
            notifications,
            geocoder,
            confidence_threshold=s.tracking.confidence_threshold,
            geocode_timeout_sec=s.geocoder.timeout_sec,
            fallback_location=s.geocoder.fallback_text,
        ),
        queue_maxsize=s.reliability.queue_maxsize,
        drop_on_full=s.reliability.drop_on_full,
    )
    janitor = RetentionJanitor(
        store,
        notifications,
        observation_max_age_days=s.retention.observation_max_age_days,
        notification_max_age_days=s.retention.notification_max_age_days,
    )
    return Services(
        store=store,
        orchestrator=orch,
        stats=ObservationStatsAggregator(store, store),
        janitor=janitor,
        inline=inline,
    )

def build_schedulers(s: Settings, janitor: RetentionJanitor) -> List[RetentionScheduler]:
    if not s.retention.enabled:
        return []
    return [
        RetentionScheduler(janitor.run_once, DailySchedule.parse(s.retention.observation_run_at),
                           kind="observations"),
        RetentionScheduler(janitor.purge_notifications, DailySchedule.parse(s.retention.notification_run_at),
                           kind="notifications"),
    ]

async def start_http(settings: Settings, services: Services) -> Optional[asyncio.Task]:
    app = create_app(settings, services)
    return asyncio.create_task(uvicorn.Server(
        uvicorn.Config(app, host="0.0.0.0", port=settings.observability.http_port, log_level="info")
    ).serve())

async def start_admin_http(settings: Settings, services: Services) -> Optional[asyncio.Task]:
    app = create_admin_app(settings, services)
    return asyncio.create_task(uvicorn.Server(
        uvicorn.Config(app, host=settings.observability.admin_host,
                       port=settings.observability.admin_port, log_level="info")
    ).serve())

async def main():
    s = build_settings()
    setup_logging(s.observability.log_level, json=s.observability.log_json)
    log = get_logger()
    log.info("설정 로드 완료")

    store = SQLiteTrackingStore(s.storage.db_path); await store.init()
    notifications = SQLiteNotificationStore(s.storage.db_path); await notifications.init()
    geocoder = NominatimGeocoder(
        s.geocoder.base_url,
        user_agent=s.geocoder.user_agent,
        timeout=s.geocoder.timeout_sec,
        max_retries=s.geocoder.max_retries,
        backoff_initial_sec=s.reliability.backoff_initial_sec,
        backoff_max_sec=s.reliability.backoff_max_sec,
        fallback_text=s.geocoder.fallback_text,
    )

    services = build_services(s, store, notifications, geocoder)
    log.info("파이프라인 구성 완료")

    http_task = await start_http(s, services)
    admin_task = await start_admin_http(s, services)
    orch_task = asyncio.create_task(services.orchestrator.start())
    sched_tasks = [asyncio.create_task(t.run_forever()) for t in build_schedulers(s, services.janitor)]

    stop = asyncio.Future()
    try:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            try: loop.add_signal_handler(sig, lambda: (not stop.done()) and stop.set_result(True))
            except NotImplementedError: pass
    except RuntimeError: pass

    await stop
    log.info("종료 중")
    for task in [orch_task, http_task, admin_task, *sched_tasks]:
        task.cancel()
    await geocoder.close()

def run():
    asyncio.run(main())

if __name__ == "__main__":
    run()

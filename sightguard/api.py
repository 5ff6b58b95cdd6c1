"""
HTTP endpoints for SightGuard.

This module implements the anonymous report ingestion endpoint, the
owner-side observation queries and the health, readiness, metrics
and info endpoints on the public app, and the retention trigger on a
separate admin app.
"""

import time
from dataclasses import dataclass
from datetime import datetime
from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.responses import Response, JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from sightguard.adapters.storage.sqlite_tracking import SQLiteTrackingStore
from sightguard.features.retention import RetentionJanitor
from sightguard.features.stats import ObservationStatsAggregator
from sightguard.orchestrators.orchestrator import ReportOrchestrator
from sightguard.settings import Settings
from sightguard.observability.logging_setup import get_logger

log = get_logger("sightguard.api")

# 거부 사유와 무관하게 항상 같은 응답 (디바이스 상태 오라클 방지)
ACCEPTED_BODY = {"status": "accepted"}
# 조회 응답에서 실제 관측과 고스트를 구분할 수 없도록 숨기는 필드
HIDDEN_OBSERVATION_FIELDS = {"is_ghost"}

@dataclass
class Services:
    """HTTP 계층이 사용하는 서비스 묶음"""
    store: SQLiteTrackingStore
    orchestrator: ReportOrchestrator
    stats: ObservationStatsAggregator
    janitor: RetentionJanitor
    # True면 요청 안에서 처리 (테스트/단일 프로세스용), False면 큐에 넣음
    inline: bool = False

def create_app(settings: Settings, services: Services) -> FastAPI:
    """FastAPI 애플리케이션을 생성합니다."""
    app = FastAPI(
        title=settings.observability.service_name,
        version=settings.observability.build_version,
        description="SightGuard anonymous sighting ingestion service"
    )

    start_time = time.time()

    @app.post("/anonymous-reports")
    async def anonymous_report(request: Request):
        """익명 목격 신고 수신 (항상 동일한 응답)"""
        try:
            raw = await request.json()
        except ValueError:
            raw = {}
        if not isinstance(raw, dict):
            raw = {}

        if services.inline:
            await services.orchestrator.handle(raw)
        else:
            await services.orchestrator.submit(raw)
        return JSONResponse(ACCEPTED_BODY)

    @app.get("/observations/device/{device_id}")
    async def device_observations(device_id: int,
                                  limit: int = Query(50, ge=1, le=500),
                                  offset: int = Query(0, ge=0)):
        """디바이스 관측 목록 (최신순)"""
        items = await services.store.list_observations(device_id, limit=limit, offset=offset)
        return [o.model_dump(mode="json", exclude=HIDDEN_OBSERVATION_FIELDS) for o in items]

    @app.get("/observations/device/{device_id}/range")
    async def device_observations_range(device_id: int,
                                        start_time: datetime,
                                        end_time: datetime,
                                        limit: int = Query(50, ge=1, le=500),
                                        offset: int = Query(0, ge=0)):
        """구간 내 디바이스 관측 목록 (최신순)"""
        if end_time < start_time:
            raise HTTPException(status_code=400, detail="end_time must not precede start_time")
        items = await services.store.list_observations(
            device_id, limit=limit, offset=offset, start=start_time, end=end_time
        )
        return [o.model_dump(mode="json", exclude=HIDDEN_OBSERVATION_FIELDS) for o in items]

    @app.get("/observations/stats/device/{device_id}")
    async def device_stats(device_id: int):
        """디바이스 관측 통계"""
        stats = await services.stats.stats(device_id)
        if stats is None:
            raise HTTPException(status_code=404, detail=f"Device not found with id: {device_id}")
        return stats.model_dump(by_alias=True, mode="json")

    @app.get("/health")
    async def health():
        """헬스 체크 엔드포인트"""
        return JSONResponse({
            "status": "ok",
            "service": settings.observability.service_name,
            "timestamp": time.time()
        })

    @app.get("/ready")
    async def ready():
        """레디니스 체크 엔드포인트"""
        return JSONResponse({
            "status": "ready",
            "service": settings.observability.service_name,
            "queue_depth": services.orchestrator.q.qsize(),
            "timestamp": time.time()
        })

    @app.get("/metrics")
    async def metrics():
        """Prometheus 메트릭 엔드포인트"""
        if not settings.observability.metrics_enabled:
            raise HTTPException(status_code=503, detail="Metrics disabled")
        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

    @app.get("/info")
    async def info():
        """서비스 정보 엔드포인트"""
        uptime = time.time() - start_time
        return JSONResponse({
            "service": settings.observability.service_name,
            "version": settings.observability.build_version,
            "build_date": settings.observability.build_date,
            "uptime_seconds": int(uptime),
            "metrics_enabled": settings.observability.metrics_enabled,
            "log_level": settings.observability.log_level
        })

    return app

def create_admin_app(settings: Settings, services: Services) -> FastAPI:
    """
    운영용 FastAPI 애플리케이션을 생성합니다.

    인증이 없으므로 공개 리스너가 아닌 observability.admin_host(기본 127.0.0.1)에만 띄웁니다.
    """
    app = FastAPI(
        title=f"{settings.observability.service_name} admin",
        version=settings.observability.build_version,
    )

    @app.post("/admin/retention/run")
    async def run_retention():
        """정리 작업을 즉시 실행합니다."""
        try:
            observations = await services.janitor.run_once()
            notifications = await services.janitor.purge_notifications()
        except Exception as e:
            log.error(f"수동 정리 작업 실패 error:{str(e)}")
            raise HTTPException(status_code=500, detail="Retention run failed")
        return {"observations_deleted": observations, "notifications_deleted": notifications}

    return app

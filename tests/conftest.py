"""
테스트 설정 및 픽스처

이 모듈은 pytest 설정과 공통 픽스처를 제공합니다.
"""

import pytest
import asyncio
import os
import tempfile
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock
from sightguard.settings import Settings
from sightguard.core.models import (
    Device, DeviceStatus, Notification, Observation, TheftReport, TheftReportStatus,
)
from sightguard.adapters.storage.sqlite_tracking import SQLiteTrackingStore
from sightguard.adapters.storage.sqlite_notifications import SQLiteNotificationStore


STOLEN_UUID = "0b6f3c1e-stolen-device-d"
ACTIVE_UUID = "7a2d9e40-active-device-e"
NO_CASE_UUID = "c41b8a77-stolen-no-case"


@pytest.fixture
def temp_db_path():
    """임시 데이터베이스 파일 경로"""
    with tempfile.NamedTemporaryFile(suffix='.db', delete=False) as f:
        temp_path = f.name
    yield temp_path
    # 테스트 후 파일 정리 (WAL 부속 파일 포함)
    for suffix in ("", "-wal", "-shm"):
        if os.path.exists(temp_path + suffix):
            os.unlink(temp_path + suffix)


@pytest.fixture
def now():
    """테스트 기준 시각"""
    return datetime.now(timezone.utc).replace(microsecond=0)


@pytest.fixture
def sample_settings():
    """테스트용 설정"""
    settings = Settings()
    settings.observability.service_name = "test-service"
    settings.observability.build_version = "1.0.0"
    settings.observability.log_level = "INFO"
    settings.observability.http_port = 8080
    return settings


@pytest.fixture
def stolen_device():
    """STOLEN + ACTIVE 도난 신고가 있는 디바이스 D"""
    return Device(id=1, partition_uuid=STOLEN_UUID, name="Pixel D", owner_id=100,
                  status=DeviceStatus.STOLEN)


@pytest.fixture
def active_device():
    """도난 상태가 아닌 디바이스 E"""
    return Device(id=2, partition_uuid=ACTIVE_UUID, name="Tablet E", owner_id=200,
                  status=DeviceStatus.ACTIVE)


@pytest.fixture
def stolen_without_case():
    """STOLEN이지만 ACTIVE 도난 신고가 없는 디바이스"""
    return Device(id=3, partition_uuid=NO_CASE_UUID, name="Laptop F", owner_id=300,
                  status=DeviceStatus.STOLEN)


@pytest.fixture
async def store(temp_db_path, stolen_device, active_device, stolen_without_case):
    """디바이스/도난 신고가 채워진 SQLite 저장소"""
    s = SQLiteTrackingStore(temp_db_path)
    await s.init()
    await s.save_device(stolen_device)
    await s.save_device(active_device)
    await s.save_device(stolen_without_case)
    await s.save_theft_report(TheftReport(id=10, device_id=stolen_device.id,
                                          status=TheftReportStatus.ACTIVE))
    await s.save_theft_report(TheftReport(id=11, device_id=stolen_without_case.id,
                                          status=TheftReportStatus.RESOLVED))
    return s


@pytest.fixture
async def notification_store(temp_db_path):
    """같은 DB 파일을 쓰는 알림 저장소"""
    n = SQLiteNotificationStore(temp_db_path)
    await n.init()
    return n


@pytest.fixture
def mock_geocoder():
    """테스트용 역지오코더"""
    geocoder = AsyncMock()
    geocoder.lookup.return_value = "12 Rue de Rivoli, Paris"
    return geocoder


@pytest.fixture
def mock_notifier():
    """테스트용 알림 포트 (받은 알림에 id를 붙여 반환)"""
    notifier = AsyncMock()

    async def _create(notification: Notification) -> Notification:
        return notification.model_copy(update={"id": 1})

    notifier.create.side_effect = _create
    return notifier


def make_report(now: datetime, *, partition_uuid: str = STOLEN_UUID, confidence: int = 75,
                latitude: float = 48.8566, longitude: float = 2.3522, **extra) -> dict:
    """camelCase 익명 신고 본문을 만듭니다."""
    body = {
        "devicePartitionUuid": partition_uuid,
        "observationTime": (now - timedelta(minutes=5)).isoformat(),
        "latitude": latitude,
        "longitude": longitude,
        "accuracy": 12.5,
        "confidence": confidence,
        "reporterHash": "ab" * 32,
        "signalStrength": -67,
        "batteryLevel": 54,
        "networkType": "BLE",
    }
    body.update(extra)
    return body


def make_observation(device_id: int, when: datetime, *, confidence: int = 70,
                     reporter_hash: str = None, is_ghost: bool = False,
                     latitude: float = 48.85, longitude: float = 2.35) -> Observation:
    return Observation(device_id=device_id, observation_time=when, latitude=latitude,
                       longitude=longitude, accuracy=10.0, confidence=confidence,
                       reporter_hash=reporter_hash, is_ghost=is_ghost)


# pytest 설정
def pytest_configure(config):
    """pytest 설정"""
    config.addinivalue_line(
        "markers", "integration: 통합 테스트 마커"
    )


def pytest_collection_modifyitems(config, items):
    """테스트 아이템 수정"""
    for item in items:
        # 비동기 테스트에 asyncio 마커 추가
        if asyncio.iscoroutinefunction(getattr(item, "function", None)):
            item.add_marker(pytest.mark.asyncio)

        # 통합 테스트 마커 추가
        if "scenario" in item.name or "integration" in item.name:
            item.add_marker(pytest.mark.integration)

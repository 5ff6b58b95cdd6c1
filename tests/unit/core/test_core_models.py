"""
Core models 단위 테스트
"""

import pytest
from datetime import datetime, timezone, timedelta
from pydantic import ValidationError

from sightguard.core.models import AnonymousReport, Observation, ObservationStats, ensure_utc


class TestAnonymousReport:
    """익명 신고 모델 테스트"""

    def test_camel_case_payload(self):
        """외부 camelCase 필드명으로 파싱"""
        report = AnonymousReport.model_validate({
            "devicePartitionUuid": "p-1",
            "observationTime": "2026-05-01T10:00:00Z",
            "latitude": 1.5, "longitude": 2.5, "accuracy": 3.0, "confidence": 55,
            "reporterHash": "abcdef0123456789", "signalStrength": -70,
            "batteryLevel": 80, "networkType": "WIFI", "additionalData": "{}",
        })
        assert report.device_partition_uuid == "p-1"
        assert report.signal_strength == -70
        assert report.observation_time == datetime(2026, 5, 1, 10, tzinfo=timezone.utc)

    def test_naive_time_treated_as_utc(self):
        report = AnonymousReport(device_partition_uuid="p", observation_time=datetime(2026, 5, 1, 10),
                                 latitude=0, longitude=0, accuracy=0, confidence=0)
        assert report.observation_time.tzinfo == timezone.utc

    @pytest.mark.parametrize("field,value", [
        ("latitude", 90.1), ("latitude", -90.1),
        ("longitude", 180.5), ("longitude", -181),
        ("accuracy", -1), ("confidence", 101), ("confidence", -1),
        ("device_partition_uuid", ""),
    ])
    def test_out_of_range_rejected(self, field, value):
        data = dict(device_partition_uuid="p", observation_time=datetime(2026, 5, 1, tzinfo=timezone.utc),
                    latitude=0, longitude=0, accuracy=0, confidence=0)
        data[field] = value
        with pytest.raises(ValidationError):
            AnonymousReport(**data)


def test_ensure_utc_converts_offsets():
    """다른 타임존은 UTC로 변환"""
    kst = timezone(timedelta(hours=9))
    assert ensure_utc(datetime(2026, 1, 1, 9, tzinfo=kst)) == datetime(2026, 1, 1, 0, tzinfo=timezone.utc)


def test_observation_stats_external_names():
    """통계 출력은 외부 필드명 사용"""
    stats = ObservationStats(device_id=1, device_name="D", total_observations=3, last_24h=2, last_7d=3)
    dumped = stats.model_dump(by_alias=True)
    assert dumped["deviceId"] == 1
    assert dumped["totalObservations"] == 3
    assert dumped["last24h"] == 2
    assert dumped["last7d"] == 3
    assert "uniqueReporters" in dumped and "lastConfidence" in dumped


def test_observation_confidence_bounds():
    with pytest.raises(ValidationError):
        Observation(device_id=1, observation_time=datetime(2026, 1, 1, tzinfo=timezone.utc),
                    latitude=0, longitude=0, accuracy=1, confidence=120)

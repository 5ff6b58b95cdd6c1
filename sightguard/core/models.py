"""
Core domain models for SightGuard.

This module defines the core domain models using Pydantic v2
for type safety and validation.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def ensure_utc(value: datetime) -> datetime:
    """naive datetime은 UTC로 간주하고, aware datetime은 UTC로 변환합니다."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DeviceStatus(str, Enum):
    """디바이스 상태"""
    ACTIVE = "ACTIVE"
    STOLEN = "STOLEN"
    RECOVERED = "RECOVERED"
    INACTIVE = "INACTIVE"


class TheftReportStatus(str, Enum):
    """도난 신고 상태"""
    ACTIVE = "ACTIVE"
    RESOLVED = "RESOLVED"
    CANCELLED = "CANCELLED"


class Device(BaseModel):
    """디바이스 모델 (외부 소유, last-seen 필드만 이 서비스가 갱신)"""
    id: int
    partition_uuid: str
    name: str
    owner_id: Optional[int] = None
    status: DeviceStatus = DeviceStatus.ACTIVE
    last_seen: Optional[datetime] = None
    last_latitude: Optional[float] = None
    last_longitude: Optional[float] = None
    last_accuracy: Optional[float] = None


class TheftReport(BaseModel):
    """도난 신고 모델 (외부 소유)"""
    id: int
    device_id: int
    status: TheftReportStatus
    reported_at: Optional[datetime] = None


class AnonymousReport(BaseModel):
    """익명 목격 신고 입력 모델"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    device_partition_uuid: str = Field(min_length=1)
    observation_time: datetime
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    accuracy: float = Field(ge=0)
    confidence: int = Field(ge=0, le=100)
    reporter_hash: Optional[str] = None
    signal_strength: Optional[int] = None
    battery_level: Optional[int] = None
    network_type: Optional[str] = None
    additional_data: Optional[str] = None
    signature: Optional[str] = None

    @field_validator("observation_time")
    @classmethod
    def _to_utc(cls, v: datetime) -> datetime:
        return ensure_utc(v)


class Observation(BaseModel):
    """관측 모델 (실제 또는 고스트). 생성 후 수정되지 않습니다."""
    id: Optional[int] = None
    device_id: int
    observation_time: datetime
    latitude: float
    longitude: float
    accuracy: float = Field(ge=0)
    confidence: int = Field(ge=0, le=100)
    reporter_hash: Optional[str] = None
    is_ghost: bool = False
    signal_strength: Optional[int] = None
    battery_level: Optional[int] = None
    network_type: Optional[str] = None
    additional_data: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)

    @field_validator("observation_time", "created_at")
    @classmethod
    def _to_utc(cls, v: datetime) -> datetime:
        return ensure_utc(v)


class NotificationType(str, Enum):
    DEVICE_OBSERVED = "DEVICE_OBSERVED"


class Notification(BaseModel):
    """소유자 알림 모델"""
    id: Optional[int] = None
    device_id: int
    owner_id: Optional[int] = None
    type: NotificationType = NotificationType.DEVICE_OBSERVED
    title: str
    message: str
    action_url: Optional[str] = None
    action_text: Optional[str] = None
    read: bool = False
    created_at: datetime = Field(default_factory=utcnow)


class ObservationStats(BaseModel):
    """디바이스별 관측 통계"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    device_id: int
    device_name: str
    total_observations: int = 0
    last_24h: int = Field(default=0, alias="last24h")
    last_7d: int = Field(default=0, alias="last7d")
    first_observation: Optional[datetime] = None
    last_observation: Optional[datetime] = None
    average_confidence: Optional[float] = None
    unique_reporters: int = 0
    last_latitude: Optional[float] = None
    last_longitude: Optional[float] = None
    last_accuracy: Optional[float] = None
    last_confidence: Optional[int] = None


class RejectReason(str, Enum):
    """거부 사유 (내부 전용, 외부로 노출하지 않음)"""
    INVALID_REPORT = "invalid_report"
    UNKNOWN_DEVICE = "unknown_device"
    NOT_STOLEN = "not_stolen"
    NO_ACTIVE_THEFT_REPORT = "no_active_theft_report"


class Accepted(BaseModel):
    """처리 결과: 수락"""
    kind: Literal["accepted"] = "accepted"
    observation: Observation
    ghosts: list[Observation] = Field(default_factory=list)
    alerted: bool = False


class Rejected(BaseModel):
    """처리 결과: 거부"""
    kind: Literal["rejected"] = "rejected"
    reason: RejectReason


Outcome = Union[Accepted, Rejected]

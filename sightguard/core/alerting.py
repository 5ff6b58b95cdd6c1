"""
Alert policy functions for SightGuard.

This module contains pure functions that gate owner alerts on
report confidence and compose the owner-facing notification text.
"""

from .models import Device, Notification, NotificationType, Observation

ALERT_TITLE = "Stolen device spotted"
ACTION_TEXT = "View tracking"


def should_alert(observation: Observation, *, threshold: int = 60) -> bool:
    """
    알림 발송 여부를 평가합니다. 고스트는 항상 False입니다.

    Args:
        observation: 평가할 관측
        threshold: 신뢰도 임계값

    Returns:
        발송 여부
    """
    if observation.is_ghost:
        return False
    return observation.confidence >= threshold


def compose_notification(device: Device, observation: Observation, location: str) -> Notification:
    """
    소유자 알림을 구성합니다.

    Args:
        device: 대상 디바이스
        observation: 실제 관측
        location: 사람이 읽을 수 있는 위치 설명

    Returns:
        저장 전 알림 모델
    """
    message = (
        f"Your device {device.name} was spotted near {location} "
        f"with {observation.confidence}% confidence."
    )
    return Notification(
        device_id=device.id,
        owner_id=device.owner_id,
        type=NotificationType.DEVICE_OBSERVED,
        title=ALERT_TITLE,
        message=message,
        action_url=f"/tracking/{device.id}",
        action_text=ACTION_TEXT,
    )

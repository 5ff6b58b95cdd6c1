"""
Confidence-gated alert dispatcher for SightGuard.

Alerts the device owner when a real observation is confident enough.
Geocoding is bounded by a timeout and falls back to a placeholder;
notification failures never reach the reporter.
"""

import asyncio
import time
from typing import Optional
from sightguard.core.alerting import compose_notification, should_alert
from sightguard.core.models import Device, Notification, Observation
from sightguard.ports.geocode import ReverseGeocoderPort
from sightguard.ports.notify import NotificationPort
from sightguard.observability import metrics
from sightguard.observability.logging_setup import get_logger

log = get_logger("sightguard.alerts")

class AlertDispatcher:
    """신뢰도 기반 소유자 알림 발송기"""
    
    def __init__(self,
                 notifier: NotificationPort,
                 geocoder: ReverseGeocoderPort,
                 *,
                 confidence_threshold: int = 60,
                 geocode_timeout_sec: float = 5.0,
                 fallback_location: str = "Unknown location"):
        """
        초기화합니다.
        
        Args:
            notifier: 알림 포트
            geocoder: 역지오코딩 포트
            confidence_threshold: 신뢰도 임계값
            geocode_timeout_sec: 역지오코딩 제한 시간 (초)
            fallback_location: 역지오코딩 실패 시 위치 문자열
        """
        self.notifier = notifier
        self.geocoder = geocoder
        self.threshold = confidence_threshold
        self.geocode_timeout = geocode_timeout_sec
        self.fallback_location = fallback_location
    
    async def describe_location(self, lat: float, lon: float) -> str:
        """제한 시간 안에 위치 설명을 가져오고, 실패하면 대체 문자열을 반환합니다."""
        started = time.perf_counter()
        try:
            location = await asyncio.wait_for(self.geocoder.lookup(lat, lon), timeout=self.geocode_timeout)
        except asyncio.TimeoutError:
            log.warning(f"역지오코딩 시간 초과 timeout:{self.geocode_timeout}s")
            location = None
        except Exception as e:
            log.error(f"역지오코딩 오류 error:{str(e)}")
            location = None
        finally:
            metrics.geocode_seconds.observe(time.perf_counter() - started)
        
        if not location:
            metrics.geocode_fallbacks.inc()
            return self.fallback_location
        return location
    
    async def maybe_alert(self, device: Device, observation: Observation) -> Optional[Notification]:
        """
        임계값 이상이면 소유자에게 알림을 생성합니다.
        
        Args:
            device: 대상 디바이스
            observation: 실제 관측 (고스트는 무시)
            
        Returns:
            생성된 알림 또는 None
        """
        if observation.is_ghost:
            log.error(f"고스트 관측은 알림 대상이 아님 device:{device.id}")
            return None
        if not should_alert(observation, threshold=self.threshold):
            log.debug(f"임계값 미만 device:{device.id} confidence:{observation.confidence} threshold:{self.threshold}")
            return None
        
        location = await self.describe_location(observation.latitude, observation.longitude)
        notification = compose_notification(device, observation, location)
        
        try:
            saved = await self.notifier.create(notification)
        except Exception as e:
            metrics.alert_failures.inc()
            log.error(f"소유자 알림 생성 실패 device:{device.id} error:{str(e)}")
            return None
        
        metrics.alerts_dispatched.inc()
        log.info(f"소유자 알림 발송 요청됨 device:{device.id} confidence:{observation.confidence}")
        return saved

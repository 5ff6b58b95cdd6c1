"""
Observation stats aggregator for SightGuard.

Point-in-time aggregates over a device's stored observations
(real and ghost alike, as persisted).
"""

from datetime import datetime, timedelta
from typing import Optional
from sightguard.core.models import ObservationStats, utcnow
from sightguard.ports.repository import DeviceRepositoryPort, ObservationRepositoryPort

class ObservationStatsAggregator:
    """관측 통계 집계기"""
    
    def __init__(self, devices: DeviceRepositoryPort, observations: ObservationRepositoryPort):
        self.devices = devices
        self.observations = observations
    
    async def stats(self, device_id: int, now: Optional[datetime] = None) -> Optional[ObservationStats]:
        """
        디바이스의 관측 통계를 계산합니다.
        
        개별 집계는 서로 다른 시점에 읽힐 수 있습니다 (스냅샷 격리 없음).
        
        Args:
            device_id: 디바이스 ID
            now: 기준 시각, None이면 현재 시각
            
        Returns:
            통계, 디바이스가 없으면 None
        """
        device = await self.devices.get_device(device_id)
        if device is None:
            return None
        
        now = now or utcnow()
        first, last = await self.observations.observation_time_bounds(device_id)
        latest = await self.observations.latest_observation(device_id)
        
        return ObservationStats(
            device_id=device_id,
            device_name=device.name,
            total_observations=await self.observations.count_observations(device_id),
            last_24h=await self.observations.count_observations(device_id, since=now - timedelta(hours=24)),
            last_7d=await self.observations.count_observations(device_id, since=now - timedelta(days=7)),
            first_observation=first,
            last_observation=last,
            average_confidence=await self.observations.average_confidence(device_id),
            unique_reporters=await self.observations.count_unique_reporters(device_id),
            last_latitude=latest.latitude if latest else None,
            last_longitude=latest.longitude if latest else None,
            last_accuracy=latest.accuracy if latest else None,
            last_confidence=latest.confidence if latest else None,
        )

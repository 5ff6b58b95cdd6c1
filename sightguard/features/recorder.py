"""
Observation recorder for SightGuard.

Builds the real observation of an accepted report and persists it
together with its ghost batch, moving the device's last-known location
to it (last-write-wins) in the same transaction.
"""

from typing import List, Sequence, Tuple
from sightguard.core.models import AnonymousReport, Device, Observation
from sightguard.ports.repository import ObservationRepositoryPort
from sightguard.observability import metrics
from sightguard.observability.logging_setup import get_logger

log = get_logger("sightguard.recorder")

class ObservationRecorder:
    """실제 관측 기록기"""
    
    def __init__(self, observations: ObservationRepositoryPort):
        self.observations = observations
    
    def build(self, device: Device, report: AnonymousReport) -> Observation:
        """검증된 신고로부터 저장 전 실제 관측을 만듭니다."""
        return Observation(
            device_id=device.id,
            observation_time=report.observation_time,
            latitude=report.latitude,
            longitude=report.longitude,
            accuracy=report.accuracy,
            confidence=report.confidence,
            reporter_hash=report.reporter_hash,
            is_ghost=False,
            signal_strength=report.signal_strength,
            battery_level=report.battery_level,
            network_type=report.network_type,
            additional_data=report.additional_data,
        )
    
    async def record(self, real: Observation,
                     ghosts: Sequence[Observation]) -> Tuple[Observation, List[Observation]]:
        """
        실제 관측과 고스트 묶음을 함께 저장합니다.
        
        Args:
            real: build()로 만든 실제 관측
            ghosts: real 에서 파생된 고스트 관측
            
        Returns:
            저장된 (실제 관측, 고스트 목록)
        """
        saved, saved_ghosts = await self.observations.record_sighting(real, ghosts)
        metrics.observations_recorded.inc()
        metrics.ghosts_generated.inc(len(saved_ghosts))
        log.info(f"도난 디바이스 관측 저장됨 device:{saved.device_id} observation:{saved.id} ghosts:{len(saved_ghosts)}")
        return saved, saved_ghosts

"""
Repository port interfaces.

This module defines the logical storage contracts used by the
report pipeline, the stats aggregator and the retention janitor.
"""

from datetime import datetime
from typing import List, Optional, Protocol, Sequence, Tuple
from sightguard.core.models import Device, Observation, TheftReport

class DeviceRepositoryPort(Protocol):
    """디바이스 저장소 포트 인터페이스"""
    
    async def get_device(self, device_id: int) -> Optional[Device]:
        ...
    
    async def find_by_partition_uuid(self, partition_uuid: str) -> Optional[Device]:
        """
        외부 노출용 파티션 UUID로 디바이스를 조회합니다.
        
        Args:
            partition_uuid: 파티션 UUID
            
        Returns:
            디바이스 또는 None
        """
        ...

class TheftReportRepositoryPort(Protocol):
    """도난 신고 저장소 포트 인터페이스"""
    
    async def find_active_report(self, device_id: int) -> Optional[TheftReport]:
        """
        디바이스의 ACTIVE 도난 신고를 조회합니다.
        
        Args:
            device_id: 디바이스 ID
            
        Returns:
            ACTIVE 도난 신고 또는 None
        """
        ...

class ObservationRepositoryPort(Protocol):
    """관측 저장소 포트 인터페이스"""
    
    async def record_sighting(self, real: Observation,
                              ghosts: Sequence[Observation] = ()) -> Tuple[Observation, List[Observation]]:
        """
        실제 관측, 고스트 묶음, 디바이스 last-seen 갱신을 하나의 트랜잭션으로 저장합니다.
        
        Args:
            real: is_ghost=False 관측
            ghosts: 고스트 관측
            
        Returns:
            id가 부여된 (실제 관측, 고스트 목록)
        """
        ...
    
    async def list_observations(self, device_id: int, *, limit: int = 50, offset: int = 0,
                                start: Optional[datetime] = None,
                                end: Optional[datetime] = None) -> List[Observation]:
        """최신순으로 관측을 조회합니다. start/end가 주어지면 그 구간만 조회합니다."""
        ...
    
    async def count_observations(self, device_id: int, since: Optional[datetime] = None) -> int:
        ...
    
    async def observation_time_bounds(self, device_id: int) -> Tuple[Optional[datetime], Optional[datetime]]:
        """(최초, 최근) 관측 시각을 반환합니다."""
        ...
    
    async def average_confidence(self, device_id: int) -> Optional[float]:
        ...
    
    async def count_unique_reporters(self, device_id: int) -> int:
        ...
    
    async def latest_observation(self, device_id: int) -> Optional[Observation]:
        ...
    
    async def delete_older_than(self, cutoff: datetime) -> int:
        """
        관측 시각이 cutoff 이전인 모든 관측(실제/고스트)을 삭제합니다.
        
        Args:
            cutoff: 기준 시각
            
        Returns:
            삭제된 행 수
        """
        ...

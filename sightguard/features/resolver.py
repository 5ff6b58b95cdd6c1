"""
Device/theft status resolver for SightGuard.

Decides, per incoming report, whether the target device is under
active theft tracking. Nothing is cached between reports.
"""

from dataclasses import dataclass
from typing import Optional
from sightguard.core.models import Device, DeviceStatus, RejectReason
from sightguard.ports.repository import DeviceRepositoryPort, TheftReportRepositoryPort
from sightguard.observability.logging_setup import get_logger

log = get_logger("sightguard.resolver")

@dataclass
class Resolution:
    """적격성 판정 결과"""
    device: Optional[Device]
    is_eligible: bool
    reason: Optional[RejectReason] = None

class DeviceStatusResolver:
    """디바이스/도난 상태 판정기"""
    
    def __init__(self, devices: DeviceRepositoryPort, theft_reports: TheftReportRepositoryPort):
        self.devices = devices
        self.theft_reports = theft_reports
    
    async def resolve(self, partition_uuid: str) -> Resolution:
        """
        파티션 UUID로 디바이스를 찾고 추적 대상인지 판정합니다.
        
        STOLEN 상태이면서 ACTIVE 도난 신고가 있어야 적격입니다.
        
        Args:
            partition_uuid: 외부 노출용 파티션 UUID
            
        Returns:
            판정 결과
        """
        device = await self.devices.find_by_partition_uuid(partition_uuid)
        if device is None:
            log.warning(f"파티션 UUID에 해당하는 디바이스 없음 partition:{partition_uuid}")
            return Resolution(None, False, RejectReason.UNKNOWN_DEVICE)
        
        if device.status != DeviceStatus.STOLEN:
            log.debug(f"도난 상태가 아닌 디바이스 device:{device.id} status:{device.status.value}")
            return Resolution(device, False, RejectReason.NOT_STOLEN)
        
        active = await self.theft_reports.find_active_report(device.id)
        if active is None:
            log.debug(f"ACTIVE 도난 신고 없음 device:{device.id}")
            return Resolution(device, False, RejectReason.NO_ACTIVE_THEFT_REPORT)
        
        return Resolution(device, True)

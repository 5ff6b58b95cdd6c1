"""
Owner notification port interface.

This module defines the protocol for handing owner alerts to the
notification subsystem (persistence and push delivery live outside).
"""

from typing import Protocol
from sightguard.core.models import Notification

class NotificationPort(Protocol):
    """알림 생성 포트 인터페이스"""
    
    async def create(self, notification: Notification) -> Notification:
        """
        알림을 생성하고 발송을 요청합니다.
        
        Args:
            notification: 저장 전 알림
            
        Returns:
            id가 부여된 알림
        """
        ...

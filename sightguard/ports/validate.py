"""
Report validation port interface.
"""

from typing import Protocol
from sightguard.core.models import AnonymousReport

class ReportValidatorPort(Protocol):
    """신고 검증 포트 인터페이스"""
    
    async def validate(self, report: AnonymousReport) -> bool:
        """
        신고의 출처를 검증합니다.
        
        Args:
            report: 익명 신고
            
        Returns:
            수락이면 True
        """
        ...

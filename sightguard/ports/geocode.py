"""
Reverse geocoding port interface.
"""

from typing import Protocol

class ReverseGeocoderPort(Protocol):
    """역지오코딩 포트 인터페이스"""
    
    async def lookup(self, lat: float, lon: float) -> str:
        """
        좌표를 사람이 읽을 수 있는 주소로 변환합니다.
        실패 시 예외 대신 대체 문자열을 반환해야 합니다.
        """
        ...

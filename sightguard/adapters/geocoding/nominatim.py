"""
Nominatim reverse geocoding client for SightGuard.

This module resolves coordinates to a human-readable address using
the OpenStreetMap Nominatim API, failing soft to a placeholder.
"""

import aiohttp
from typing import Dict, Optional
from sightguard.common.retry import retry_with_backoff
from sightguard.observability.logging_setup import get_logger

log = get_logger("sightguard.geocoder")

class NominatimGeocoder:
    """Nominatim 역지오코딩 클라이언트"""

    def __init__(self,
                 base_url: str = "https://nominatim.openstreetmap.org",
                 *,
                 user_agent: str = "SightGuardTracking",
                 timeout: float = 5.0,
                 max_retries: int = 1,
                 backoff_initial_sec: float = 0.2,
                 backoff_max_sec: float = 1.0,
                 fallback_text: str = "Unknown location"):
        """
        초기화합니다.

        Args:
            base_url: Nominatim API 기본 URL
            user_agent: User-Agent 헤더 (Nominatim 이용 정책상 필수)
            timeout: 요청 타임아웃 (초)
            max_retries: 최대 재시도 횟수
            backoff_initial_sec: 첫 재시도 대기 시간 (초)
            backoff_max_sec: 재시도 대기 상한 (초)
            fallback_text: 조회 실패 시 반환할 문자열
        """
        self.base_url = base_url.rstrip('/')
        self.user_agent = user_agent
        self.timeout = timeout
        self.max_retries = max_retries
        self.backoff_initial = backoff_initial_sec
        self.backoff_max = backoff_max_sec
        self.fallback_text = fallback_text
        self.session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self):
        """비동기 컨텍스트 매니저 진입"""
        self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """비동기 컨텍스트 매니저 종료"""
        await self.close()

    def _ensure_session(self) -> aiohttp.ClientSession:
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession(
                headers={"User-Agent": self.user_agent, "Accept": "application/json"},
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            )
        return self.session

    async def close(self) -> None:
        if self.session and not self.session.closed:
            await self.session.close()
        self.session = None

    async def _reverse(self, lat: float, lon: float) -> Dict:
        session = self._ensure_session()
        params = {"format": "json", "lat": str(lat), "lon": str(lon), "zoom": "18", "addressdetails": "1"}

        async def _request():
            async with session.get(f"{self.base_url}/reverse", params=params) as response:
                response.raise_for_status()
                return await response.json(content_type=None)

        return await retry_with_backoff(_request, max_retries=self.max_retries,
                                        base_delay=self.backoff_initial, max_delay=self.backoff_max)

    async def lookup(self, lat: float, lon: float) -> str:
        """
        좌표를 주소 문자열로 변환합니다.

        Args:
            lat: 위도
            lon: 경도

        Returns:
            주소 문자열, 실패 시 fallback_text
        """
        try:
            data = await self._reverse(lat, lon)
            name = data.get("display_name") if isinstance(data, dict) else None
            if name:
                return name
            log.warning("역지오코딩 응답에 display_name 없음")
            return self.fallback_text
        except Exception as e:
            log.error(f"역지오코딩 실패 error:{str(e)}")
            return self.fallback_text

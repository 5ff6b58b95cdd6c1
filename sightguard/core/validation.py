"""
Anonymous report provenance checks for SightGuard.

This module implements the report validator: a plausibility check
on every report plus an HMAC-SHA256 signature check when a shared
secret is configured.
"""

import hashlib
import hmac
import json
import re
from datetime import datetime, timedelta
from typing import Optional
from .models import AnonymousReport, utcnow
from sightguard.observability.logging_setup import get_logger

log = get_logger("sightguard.validator")

# 신고자 지문: 공백 없는 출력 가능 ASCII, 최대 128자 (형식은 클라이언트마다 다름)
REPORTER_HASH_RE = re.compile(r"^[\x21-\x7e]{1,128}$")


def _opt(value) -> str:
    return "" if value is None else str(value)


def canonical_payload(report: AnonymousReport) -> bytes:
    """
    서명 대상 정규 문자열을 만듭니다.

    Args:
        report: 익명 신고

    Returns:
        UTF-8 인코딩된 정규 페이로드
    """
    parts = [
        report.device_partition_uuid,
        report.observation_time.isoformat(),
        f"{report.latitude:.7f}",
        f"{report.longitude:.7f}",
        f"{report.accuracy:.2f}",
        str(report.confidence),
        report.reporter_hash or "",
        _opt(report.signal_strength),
        _opt(report.battery_level),
        report.network_type or "",
        report.additional_data or "",
    ]
    # JSON 배열로 직렬화해 필드 값 안의 구분자가 경계를 흐리지 않게 함
    return json.dumps(parts, ensure_ascii=False, separators=(",", ":")).encode("utf-8")


def sign_report(report: AnonymousReport, secret: str) -> str:
    """신고 페이로드의 HMAC-SHA256 서명(16진수)을 계산합니다."""
    return hmac.new(secret.encode("utf-8"), canonical_payload(report), hashlib.sha256).hexdigest()


class ReportValidator:
    """익명 신고 검증기"""

    def __init__(self,
                 hmac_secret: str = "",
                 *,
                 max_clock_skew_sec: int = 300,
                 max_age_days: int = 30):
        """
        초기화합니다.

        Args:
            hmac_secret: 공유 비밀키, 빈 문자열이면 서명 검사 생략
            max_clock_skew_sec: 허용되는 미래 시각 오차 (초)
            max_age_days: 허용되는 최대 관측 나이 (일)
        """
        self.secret = hmac_secret
        self.max_skew = timedelta(seconds=max_clock_skew_sec)
        self.max_age = timedelta(days=max_age_days)

    def is_plausible(self, report: AnonymousReport, now: Optional[datetime] = None) -> bool:
        """시각과 신고자 해시 형식의 타당성을 확인합니다."""
        now = now or utcnow()
        if report.observation_time > now + self.max_skew:
            log.warning(f"미래 시각 신고 거부 partition:{report.device_partition_uuid}")
            return False
        if report.observation_time < now - self.max_age:
            log.warning(f"보존 기간을 넘긴 신고 거부 partition:{report.device_partition_uuid}")
            return False
        if report.reporter_hash is not None and not REPORTER_HASH_RE.match(report.reporter_hash):
            log.warning(f"신고자 해시 형식 오류 partition:{report.device_partition_uuid}")
            return False
        return True

    def has_valid_signature(self, report: AnonymousReport) -> bool:
        """서명을 상수 시간 비교로 확인합니다."""
        if not self.secret:
            return True
        if not report.signature:
            log.warning(f"서명 없는 신고 거부 partition:{report.device_partition_uuid}")
            return False
        expected = sign_report(report, self.secret)
        if not hmac.compare_digest(expected, report.signature.lower()):
            log.warning(f"서명 불일치 partition:{report.device_partition_uuid}")
            return False
        return True

    async def validate(self, report: AnonymousReport) -> bool:
        """
        신고의 출처를 검증합니다.

        Args:
            report: 익명 신고

        Returns:
            수락 여부
        """
        return self.is_plausible(report) and self.has_valid_signature(report)

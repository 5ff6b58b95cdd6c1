"""
Report validator 단위 테스트
"""

import pytest
from datetime import datetime, timedelta, timezone

from sightguard.core.models import AnonymousReport
from sightguard.core.validation import ReportValidator, canonical_payload, sign_report


def _report(now: datetime, **overrides) -> AnonymousReport:
    data = dict(device_partition_uuid="dev-1", observation_time=now - timedelta(minutes=1),
                latitude=40.0, longitude=-3.7, accuracy=15.0, confidence=70,
                reporter_hash="0123456789abcdef")
    data.update(overrides)
    return AnonymousReport(**data)


@pytest.fixture
def now():
    return datetime.now(timezone.utc)


class TestPlausibility:
    """타당성 검사 테스트"""

    def test_recent_report_plausible(self, now):
        assert ReportValidator().is_plausible(_report(now), now=now) is True

    def test_future_report_rejected(self, now):
        """허용 오차를 넘는 미래 시각은 거부"""
        validator = ReportValidator(max_clock_skew_sec=300)
        assert validator.is_plausible(_report(now, observation_time=now + timedelta(minutes=4)), now=now)
        assert not validator.is_plausible(_report(now, observation_time=now + timedelta(minutes=6)), now=now)

    def test_stale_report_rejected(self, now):
        """보존 기간보다 오래된 관측은 거부"""
        validator = ReportValidator(max_age_days=30)
        assert not validator.is_plausible(_report(now, observation_time=now - timedelta(days=31)), now=now)

    @pytest.mark.parametrize("reporter_hash,ok", [
        (None, True),
        ("ab" * 32, True),
        ("reporter_12345678_4821", True),
        ("xyz", True),
        ("has space", False),
        ("", False),
        ("a" * 200, False),
    ])
    def test_reporter_hash_format(self, now, reporter_hash, ok):
        assert ReportValidator().is_plausible(_report(now, reporter_hash=reporter_hash), now=now) is ok


class TestSignature:
    """HMAC 서명 테스트"""

    @pytest.mark.asyncio
    async def test_no_secret_skips_signature(self, now):
        """비밀키가 없으면 서명 검사 생략"""
        assert await ReportValidator("").validate(_report(now)) is True

    @pytest.mark.asyncio
    async def test_valid_signature_accepted(self, now):
        report = _report(now)
        report.signature = sign_report(report, "s3cret")
        assert await ReportValidator("s3cret").validate(report) is True

    @pytest.mark.asyncio
    async def test_missing_signature_rejected(self, now):
        assert await ReportValidator("s3cret").validate(_report(now)) is False

    @pytest.mark.asyncio
    async def test_tampered_payload_rejected(self, now):
        """서명 후 좌표를 바꾸면 거부"""
        report = _report(now)
        signature = sign_report(report, "s3cret")
        tampered = report.model_copy(update={"latitude": 41.0, "signature": signature})
        assert await ReportValidator("s3cret").validate(tampered) is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize("field,value", [
        ("additional_data", '{"injected": true}'),
        ("network_type", "LTE"),
        ("signal_strength", -20),
        ("battery_level", 99),
    ])
    async def test_tampered_telemetry_rejected(self, now, field, value):
        """서명 후 저장되는 부가 필드를 바꿔도 거부"""
        report = _report(now, additional_data='{"k": 1}', network_type="BLE",
                         signal_strength=-70, battery_level=40)
        signature = sign_report(report, "s3cret")
        tampered = report.model_copy(update={field: value, "signature": signature})
        assert await ReportValidator("s3cret").validate(tampered) is False

    def test_field_boundaries_not_ambiguous(self, now):
        """필드 값 안의 구분자로 다른 신고와 같은 페이로드를 만들 수 없음"""
        a = _report(now, network_type="a|b", additional_data="c")
        b = _report(now, network_type="a", additional_data="b|c")
        assert canonical_payload(a) != canonical_payload(b)

    def test_canonical_payload_stable(self, now):
        """같은 신고는 같은 정규 페이로드"""
        a = _report(now)
        b = _report(now)
        assert canonical_payload(a) == canonical_payload(b)
        assert b"dev-1" in canonical_payload(a)

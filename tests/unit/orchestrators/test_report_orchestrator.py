"""
Report orchestrator 단위 테스트

이 모듈은 검증 -> 판정 -> 고스트 생성 -> 기록 -> 알림 파이프라인을 테스트합니다.
"""

import asyncio
import random
import pytest
from unittest.mock import AsyncMock, patch
from conftest import make_report, ACTIVE_UUID, NO_CASE_UUID
from sightguard.adapters.storage import sqlite_tracking
from sightguard.core.models import Accepted, Rejected, RejectReason
from sightguard.core.validation import ReportValidator
from sightguard.features.alerts import AlertDispatcher
from sightguard.features.ghosts import GhostObservationGenerator
from sightguard.features.recorder import ObservationRecorder
from sightguard.features.resolver import DeviceStatusResolver
from sightguard.orchestrators.orchestrator import ReportOrchestrator


def build_orchestrator(store, notifier, geocoder, *, validator=None, **kwargs) -> ReportOrchestrator:
    return ReportOrchestrator(
        validator or ReportValidator(),
        DeviceStatusResolver(store, store),
        ObservationRecorder(store),
        GhostObservationGenerator(ghost_min=3, ghost_max=7, rng=random.Random(11)),
        AlertDispatcher(notifier, geocoder, confidence_threshold=60),
        **kwargs,
    )


class TestReportOrchestrator:
    """오케스트레이터 테스트"""

    @pytest.fixture
    def orch(self, store, mock_notifier, mock_geocoder):
        return build_orchestrator(store, mock_notifier, mock_geocoder)

    @pytest.mark.asyncio
    async def test_accepted_high_confidence(self, orch, store, mock_notifier, stolen_device, now):
        """적격 디바이스, 신뢰도 75: 관측 1 + 고스트 3-7 + 알림 1"""
        outcome = await orch.process(make_report(now, confidence=75))

        assert isinstance(outcome, Accepted)
        assert outcome.observation.is_ghost is False
        assert 3 <= len(outcome.ghosts) <= 7
        assert outcome.alerted is True
        mock_notifier.create.assert_awaited_once()
        assert await store.count_observations(stolen_device.id) == 1 + len(outcome.ghosts)

    @pytest.mark.asyncio
    async def test_accepted_low_confidence_no_alert(self, orch, mock_notifier, now):
        outcome = await orch.process(make_report(now, confidence=59))
        assert isinstance(outcome, Accepted)
        assert outcome.alerted is False
        assert len(outcome.ghosts) >= 3
        mock_notifier.create.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("uuid,reason", [
        ("unknown-partition", RejectReason.UNKNOWN_DEVICE),
        (ACTIVE_UUID, RejectReason.NOT_STOLEN),
        (NO_CASE_UUID, RejectReason.NO_ACTIVE_THEFT_REPORT),
    ])
    async def test_ineligible_rejected_without_side_effects(self, orch, store, mock_notifier,
                                                            active_device, now, uuid, reason):
        """부적격 디바이스는 아무것도 기록하지 않음"""
        outcome = await orch.process(make_report(now, partition_uuid=uuid))

        assert isinstance(outcome, Rejected)
        assert outcome.reason == reason
        assert await store.count_observations(active_device.id) == 0
        mock_notifier.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_malformed_report_rejected(self, orch, store, stolen_device, now):
        outcome = await orch.process(make_report(now, confidence=150))
        assert isinstance(outcome, Rejected)
        assert outcome.reason == RejectReason.INVALID_REPORT
        assert await store.count_observations(stolen_device.id) == 0

    @pytest.mark.asyncio
    async def test_validator_failure_rejected(self, store, mock_notifier, mock_geocoder, stolen_device, now):
        """검증 실패 시 디바이스 조회 전에 거부"""
        validator = AsyncMock()
        validator.validate.return_value = False
        orch = build_orchestrator(store, mock_notifier, mock_geocoder, validator=validator)

        outcome = await orch.process(make_report(now))

        assert isinstance(outcome, Rejected)
        assert outcome.reason == RejectReason.INVALID_REPORT
        assert await store.count_observations(stolen_device.id) == 0

    @pytest.mark.asyncio
    async def test_notifier_failure_still_accepted(self, store, mock_geocoder, stolen_device, now):
        """알림 실패는 관측/고스트 저장에 영향 없음"""
        notifier = AsyncMock()
        notifier.create.side_effect = RuntimeError("down")
        orch = build_orchestrator(store, notifier, mock_geocoder)

        outcome = await orch.process(make_report(now, confidence=95))

        assert isinstance(outcome, Accepted)
        assert outcome.alerted is False
        assert await store.count_observations(stolen_device.id) == 1 + len(outcome.ghosts)

    @pytest.mark.asyncio
    async def test_client_fingerprint_accepted(self, orch, store, stolen_device, now):
        """16진수가 아닌 클라이언트 지문 형식도 수락"""
        outcome = await orch.process(make_report(now, reporterHash="reporter_12345678_4821"))

        assert isinstance(outcome, Accepted)
        assert outcome.observation.reporter_hash == "reporter_12345678_4821"
        assert await store.count_observations(stolen_device.id) == 1 + len(outcome.ghosts)

    @pytest.mark.asyncio
    async def test_sighting_failure_leaves_no_unmasked_row(self, orch, store, mock_notifier, stolen_device, now):
        """고스트 저장 단계가 실패하면 실제 관측도 남지 않고 알림도 없음"""
        real_params = sqlite_tracking._obs_params

        def failing_params(o):
            if o.is_ghost:
                raise RuntimeError("disk full")
            return real_params(o)

        with patch.object(sqlite_tracking, "_obs_params", side_effect=failing_params):
            assert await orch.handle(make_report(now, confidence=95)) is None

        assert await store.count_observations(stolen_device.id) == 0
        assert (await store.get_device(stolen_device.id)).last_seen is None
        mock_notifier.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_handle_absorbs_errors(self, orch, now):
        """처리 중 예외는 흡수되어 None"""
        orch.resolver = AsyncMock()
        orch.resolver.resolve.side_effect = RuntimeError("db locked")
        assert await orch.handle(make_report(now)) is None

    @pytest.mark.asyncio
    async def test_submit_and_consume(self, orch, store, stolen_device, now):
        """큐에 넣은 신고를 컨슈머가 처리"""
        await orch.submit(make_report(now))
        consumer = asyncio.create_task(orch.start())
        try:
            await asyncio.wait_for(orch.q.join(), timeout=5)
        finally:
            consumer.cancel()
            await asyncio.gather(consumer, return_exceptions=True)
        assert await store.count_observations(stolen_device.id) >= 4

    @pytest.mark.asyncio
    async def test_submit_drops_when_full(self, store, mock_notifier, mock_geocoder, now):
        orch = build_orchestrator(store, mock_notifier, mock_geocoder, queue_maxsize=1, drop_on_full=True)
        await orch.submit(make_report(now))
        await orch.submit(make_report(now))
        assert orch.q.qsize() == 1


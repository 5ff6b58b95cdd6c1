"""
Anonymous report orchestrator for SightGuard.

This module runs the report pipeline:
validate -> resolve -> ghosts -> record (real + ghosts in one transaction)
-> confidence-gated alert.
Every non-success path is a Rejected outcome; nothing is surfaced
to the anonymous reporter.
"""

import asyncio
import time
from typing import Any, Dict, Optional, Union
from pydantic import ValidationError
from sightguard.core.models import Accepted, AnonymousReport, Outcome, Rejected, RejectReason
from sightguard.features.alerts import AlertDispatcher
from sightguard.features.ghosts import GhostObservationGenerator
from sightguard.features.recorder import ObservationRecorder
from sightguard.features.resolver import DeviceStatusResolver
from sightguard.ports.validate import ReportValidatorPort
from sightguard.observability import metrics
from sightguard.observability.logging_setup import get_logger

log = get_logger("sightguard.orchestrator")

class ReportOrchestrator:
    """익명 신고 처리 오케스트레이터"""
    
    def __init__(self,
                 validator: ReportValidatorPort,
                 resolver: DeviceStatusResolver,
                 recorder: ObservationRecorder,
                 ghosts: GhostObservationGenerator,
                 dispatcher: AlertDispatcher,
                 *,
                 queue_maxsize: int = 1000,
                 drop_on_full: bool = False):
        """
        초기화합니다.
        
        Args:
            validator: 신고 검증 포트
            resolver: 디바이스/도난 상태 판정기
            recorder: 실제 관측 기록기
            ghosts: 고스트 관측 생성기
            dispatcher: 소유자 알림 발송기
            queue_maxsize: 큐 최대 크기
            drop_on_full: 큐가 가득 찰 때 신고 드롭 여부
        """
        self.validator = validator
        self.resolver = resolver
        self.recorder = recorder
        self.ghosts = ghosts
        self.dispatcher = dispatcher
        self.q: asyncio.Queue = asyncio.Queue(maxsize=queue_maxsize)
        self.drop_on_full = drop_on_full
    
    def _reject(self, reason: RejectReason) -> Rejected:
        metrics.reports_rejected.labels(reason=reason.value).inc()
        return Rejected(reason=reason)
    
    async def process(self, raw: Union[AnonymousReport, Dict[str, Any]]) -> Outcome:
        """
        신고 하나를 처리합니다.
        
        Args:
            raw: 검증 전 딕셔너리 또는 AnonymousReport
            
        Returns:
            내부 처리 결과 (외부로 노출하지 않음)
        """
        metrics.reports_received.inc()
        
        if isinstance(raw, AnonymousReport):
            report = raw
        else:
            try:
                report = AnonymousReport.model_validate(raw)
            except ValidationError as e:
                log.warning(f"형식 오류 신고 드롭 errors:{e.error_count()}")
                return self._reject(RejectReason.INVALID_REPORT)
        
        if not await self.validator.validate(report):
            log.warning(f"검증 실패 신고 드롭 partition:{report.device_partition_uuid}")
            return self._reject(RejectReason.INVALID_REPORT)
        
        resolution = await self.resolver.resolve(report.device_partition_uuid)
        if not resolution.is_eligible:
            return self._reject(resolution.reason)
        
        device = resolution.device
        real = self.recorder.build(device, report)
        # 고스트는 커밋 전에 만들어 실제 관측과 같은 트랜잭션으로 저장
        observation, ghosts = await self.recorder.record(real, self.ghosts.generate(device, real))
        notification = await self.dispatcher.maybe_alert(device, observation)
        
        return Accepted(observation=observation, ghosts=ghosts, alerted=notification is not None)
    
    async def submit(self, raw: Dict[str, Any]) -> None:
        """
        신고를 큐에 넣습니다. HTTP 경계는 처리 완료를 기다리지 않습니다.
        
        Args:
            raw: 요청 본문
        """
        try:
            self.q.put_nowait(raw)
        except asyncio.QueueFull:
            if self.drop_on_full:
                log.warning("큐가 가득 차 신고 드롭")
                return
            await self.q.put(raw)
        finally:
            metrics.queue_depth.set(self.q.qsize())
    
    async def handle(self, raw: Union[AnonymousReport, Dict[str, Any]]) -> Optional[Outcome]:
        """처리 중 예외를 기록하고 흡수합니다."""
        started = time.perf_counter()
        try:
            return await self.process(raw)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            log.error(f"신고 처리 오류: {e}")
            return None
        finally:
            metrics.process_seconds.observe(time.perf_counter() - started)
    
    async def start(self) -> None:
        """큐에서 신고를 꺼내 처리하는 컨슈머를 실행합니다."""
        log.info("신고 오케스트레이터 시작됨")
        while True:
            raw = await self.q.get()
            try:
                await self.handle(raw)
            finally:
                self.q.task_done()
                metrics.queue_depth.set(self.q.qsize())

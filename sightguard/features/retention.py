"""
Retention janitor for SightGuard.

This module deletes stale observations (real and ghost alike) and old
read notifications. Sweeps are plain coroutines; the daily scheduler
below is one way to trigger them, an admin endpoint is another.
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Optional
from sightguard.core.models import utcnow
from sightguard.ports.repository import ObservationRepositoryPort
from sightguard.observability import metrics
from sightguard.observability.logging_setup import get_logger

log = get_logger("sightguard.retention")

class RetentionJanitor:
    """보존 기간 정리 작업"""

    def __init__(self,
                 observations: ObservationRepositoryPort,
                 notifications=None,
                 *,
                 observation_max_age_days: int = 30,
                 notification_max_age_days: int = 30):
        """
        초기화합니다.

        Args:
            observations: 관측 저장소
            notifications: 알림 저장소 (delete_read_older_than 제공), None이면 알림 정리 생략
            observation_max_age_days: 관측 보존 기간 (일)
            notification_max_age_days: 읽은 알림 보존 기간 (일)
        """
        self.observations = observations
        self.notifications = notifications
        self.observation_max_age = timedelta(days=observation_max_age_days)
        self.notification_max_age = timedelta(days=notification_max_age_days)

    async def run_once(self, now: Optional[datetime] = None) -> int:
        """
        보존 기간을 넘긴 관측을 삭제합니다. 나이만이 유일한 기준입니다.

        조건식 삭제이므로 새 데이터 없이 두 번 실행하면 두 번째는 0을 반환합니다.

        Args:
            now: 기준 시각, None이면 현재 시각

        Returns:
            삭제된 관측 수
        """
        cutoff = (now or utcnow()) - self.observation_max_age
        deleted = await self.observations.delete_older_than(cutoff)
        metrics.retention_deleted.labels(kind="observations").inc(deleted)
        log.info(f"관측 정리 완료 deleted:{deleted} cutoff:{cutoff.isoformat()}")
        return deleted

    async def purge_notifications(self, now: Optional[datetime] = None) -> int:
        """
        보존 기간을 넘긴 읽은 알림을 삭제합니다.

        Args:
            now: 기준 시각, None이면 현재 시각

        Returns:
            삭제된 알림 수
        """
        if self.notifications is None:
            return 0
        cutoff = (now or utcnow()) - self.notification_max_age
        deleted = await self.notifications.delete_read_older_than(cutoff)
        metrics.retention_deleted.labels(kind="notifications").inc(deleted)
        log.info(f"알림 정리 완료 deleted:{deleted} cutoff:{cutoff.isoformat()}")
        return deleted


@dataclass(frozen=True)
class DailySchedule:
    """매일 고정 시각(UTC) 실행 스케줄"""
    hour: int
    minute: int = 0

    @classmethod
    def parse(cls, hhmm: str) -> "DailySchedule":
        """'HH:MM' 문자열을 파싱합니다."""
        hh, _, mm = hhmm.partition(":")
        hour, minute = int(hh), int(mm or 0)
        if not (0 <= hour < 24 and 0 <= minute < 60):
            raise ValueError(f"잘못된 실행 시각: {hhmm}")
        return cls(hour, minute)

    def next_run(self, now: datetime) -> datetime:
        """now 이후(초과) 가장 가까운 실행 시각을 반환합니다."""
        candidate = now.replace(hour=self.hour, minute=self.minute, second=0, microsecond=0)
        if candidate <= now:
            candidate += timedelta(days=1)
        return candidate

    def seconds_until_next(self, now: datetime) -> float:
        return (self.next_run(now) - now).total_seconds()


class RetentionScheduler:
    """정리 작업을 매일 정해진 시각에 실행하는 루프"""

    def __init__(self,
                 job: Callable[[], Awaitable[int]],
                 schedule: DailySchedule,
                 *,
                 kind: str = "observations",
                 clock: Callable[[], datetime] = utcnow,
                 sleep: Callable[[float], Awaitable[None]] = asyncio.sleep):
        """
        초기화합니다.

        Args:
            job: 실행할 정리 작업 (삭제 수 반환)
            schedule: 실행 스케줄
            kind: 메트릭/로그용 작업 종류
            clock: 현재 시각 함수
            sleep: 대기 함수
        """
        self.job = job
        self.schedule = schedule
        self.kind = kind
        self.clock = clock
        self.sleep = sleep

    async def tick(self) -> Optional[int]:
        """
        작업을 한 번 실행합니다. 실패는 기록만 하고 다음 실행에서 재시도합니다.

        Returns:
            삭제 수, 실패 시 None
        """
        try:
            return await self.job()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            metrics.retention_failures.labels(kind=self.kind).inc()
            log.error(f"정리 작업 실패, 다음 실행에서 재시도 kind:{self.kind} error:{str(e)}")
            return None

    async def run_forever(self) -> None:
        """다음 실행 시각까지 대기 후 작업을 실행하는 것을 반복합니다."""
        log.info(f"정리 스케줄러 시작 kind:{self.kind} at:{self.schedule.hour:02d}:{self.schedule.minute:02d} UTC")
        while True:
            delay = self.schedule.seconds_until_next(self.clock())
            await self.sleep(delay)
            await self.tick()

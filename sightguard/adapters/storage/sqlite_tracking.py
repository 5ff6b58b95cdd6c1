"""
SQLite-based tracking store for SightGuard.

This module implements the device, theft report and observation
repositories on top of a single SQLite database.
"""

import aiosqlite
from datetime import datetime, timezone
from typing import List, Optional, Sequence, Tuple
from sightguard.core.models import (
    Device, DeviceStatus, Observation, TheftReport, TheftReportStatus, ensure_utc,
)
from sightguard.observability.logging_setup import get_logger

log = get_logger("sightguard.store")

# SQLite 스키마 (시각은 UTC epoch 초로 저장)
SCHEMA = """
CREATE TABLE IF NOT EXISTS devices (
    id INTEGER PRIMARY KEY,
    partition_uuid TEXT NOT NULL UNIQUE,
    name TEXT NOT NULL,
    owner_id INTEGER,
    status TEXT NOT NULL,
    last_seen REAL,
    last_latitude REAL,
    last_longitude REAL,
    last_accuracy REAL
);
CREATE TABLE IF NOT EXISTS theft_reports (
    id INTEGER PRIMARY KEY,
    device_id INTEGER NOT NULL REFERENCES devices(id),
    status TEXT NOT NULL,
    reported_at REAL
);
CREATE INDEX IF NOT EXISTS idx_theft_device_status ON theft_reports(device_id, status);
CREATE TABLE IF NOT EXISTS observations (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    device_id INTEGER NOT NULL REFERENCES devices(id),
    observation_time REAL NOT NULL,
    latitude REAL NOT NULL,
    longitude REAL NOT NULL,
    accuracy REAL NOT NULL,
    confidence INTEGER NOT NULL,
    reporter_hash TEXT,
    is_ghost INTEGER NOT NULL DEFAULT 0,
    signal_strength INTEGER,
    battery_level INTEGER,
    network_type TEXT,
    additional_data TEXT,
    created_at REAL NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_obs_device_time ON observations(device_id, observation_time);
CREATE INDEX IF NOT EXISTS idx_obs_time ON observations(observation_time);
"""

OBS_COLUMNS = (
    "id, device_id, observation_time, latitude, longitude, accuracy, confidence, "
    "reporter_hash, is_ghost, signal_strength, battery_level, network_type, "
    "additional_data, created_at"
)

INSERT_OBS = (
    "INSERT INTO observations (device_id, observation_time, latitude, longitude, accuracy, "
    "confidence, reporter_hash, is_ghost, signal_strength, battery_level, network_type, "
    "additional_data, created_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)"
)

def _ts(value: Optional[datetime]) -> Optional[float]:
    return ensure_utc(value).timestamp() if value is not None else None

def _dt(value: Optional[float]) -> Optional[datetime]:
    return datetime.fromtimestamp(value, tz=timezone.utc) if value is not None else None

def _obs_params(o: Observation) -> tuple:
    return (
        o.device_id, _ts(o.observation_time), o.latitude, o.longitude, o.accuracy,
        o.confidence, o.reporter_hash, 1 if o.is_ghost else 0, o.signal_strength,
        o.battery_level, o.network_type, o.additional_data, _ts(o.created_at),
    )

def _row_to_obs(row) -> Observation:
    return Observation(
        id=row[0],
        device_id=row[1],
        observation_time=_dt(row[2]),
        latitude=row[3],
        longitude=row[4],
        accuracy=row[5],
        confidence=row[6],
        reporter_hash=row[7],
        is_ghost=bool(row[8]),
        signal_strength=row[9],
        battery_level=row[10],
        network_type=row[11],
        additional_data=row[12],
        created_at=_dt(row[13]),
    )

def _row_to_device(row) -> Device:
    return Device(
        id=row[0],
        partition_uuid=row[1],
        name=row[2],
        owner_id=row[3],
        status=DeviceStatus(row[4]),
        last_seen=_dt(row[5]),
        last_latitude=row[6],
        last_longitude=row[7],
        last_accuracy=row[8],
    )

DEVICE_COLUMNS = (
    "id, partition_uuid, name, owner_id, status, last_seen, last_latitude, "
    "last_longitude, last_accuracy"
)

class SQLiteTrackingStore:
    """SQLite 기반 디바이스/도난 신고/관측 저장소"""

    def __init__(self, path: str, timeout_sec: float = 5.0):
        """
        초기화합니다.

        Args:
            path: SQLite 데이터베이스 파일 경로
            timeout_sec: 잠금 대기 시간 (초)
        """
        self.path = path
        self.timeout = timeout_sec
        log.info(f"SQLiteTrackingStore 초기화: {path}")

    def _connect(self):
        return aiosqlite.connect(self.path, timeout=self.timeout)

    async def init(self) -> None:
        """데이터베이스를 초기화합니다."""
        async with self._connect() as db:
            # 읽기(통계)와 쓰기(신고/정리)가 서로 막지 않도록 WAL 사용
            await db.execute("PRAGMA journal_mode=WAL")
            await db.executescript(SCHEMA)
            await db.commit()
        log.info(f"SQLiteTrackingStore 스키마 초기화 완료: {self.path}")

    # ---- 디바이스 / 도난 신고 (외부 수명주기 컴포넌트가 기록) ----

    async def save_device(self, device: Device) -> Device:
        """디바이스를 추가하거나 덮어씁니다."""
        async with self._connect() as db:
            await db.execute(
                f"INSERT OR REPLACE INTO devices ({DEVICE_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (device.id, device.partition_uuid, device.name, device.owner_id,
                 device.status.value, _ts(device.last_seen), device.last_latitude,
                 device.last_longitude, device.last_accuracy)
            )
            await db.commit()
        return device

    async def save_theft_report(self, report: TheftReport) -> TheftReport:
        """도난 신고를 추가하거나 덮어씁니다."""
        async with self._connect() as db:
            await db.execute(
                "INSERT OR REPLACE INTO theft_reports (id, device_id, status, reported_at) VALUES (?, ?, ?, ?)",
                (report.id, report.device_id, report.status.value, _ts(report.reported_at))
            )
            await db.commit()
        return report

    async def get_device(self, device_id: int) -> Optional[Device]:
        async with self._connect() as db:
            cursor = await db.execute(f"SELECT {DEVICE_COLUMNS} FROM devices WHERE id = ?", (device_id,))
            row = await cursor.fetchone()
            return _row_to_device(row) if row else None

    async def find_by_partition_uuid(self, partition_uuid: str) -> Optional[Device]:
        """
        파티션 UUID로 디바이스를 조회합니다.

        Args:
            partition_uuid: 외부 노출용 파티션 UUID

        Returns:
            디바이스 또는 None
        """
        async with self._connect() as db:
            cursor = await db.execute(
                f"SELECT {DEVICE_COLUMNS} FROM devices WHERE partition_uuid = ?", (partition_uuid,)
            )
            row = await cursor.fetchone()
            return _row_to_device(row) if row else None

    async def find_active_report(self, device_id: int) -> Optional[TheftReport]:
        """디바이스의 ACTIVE 도난 신고를 조회합니다."""
        async with self._connect() as db:
            cursor = await db.execute(
                "SELECT id, device_id, status, reported_at FROM theft_reports "
                "WHERE device_id = ? AND status = ? ORDER BY id DESC LIMIT 1",
                (device_id, TheftReportStatus.ACTIVE.value)
            )
            row = await cursor.fetchone()
            if row:
                return TheftReport(id=row[0], device_id=row[1],
                                   status=TheftReportStatus(row[2]), reported_at=_dt(row[3]))
            return None

    # ---- 관측 ----

    async def record_sighting(self, real: Observation,
                              ghosts: Sequence[Observation] = ()) -> Tuple[Observation, List[Observation]]:
        """
        실제 관측, 고스트 묶음, 디바이스 last-seen 갱신을 하나의 트랜잭션으로 저장합니다.

        어느 하나라도 실패하면 전체가 롤백되어 고스트 없는 실제 관측이 남지 않습니다.
        last-seen 은 관측 시각과 무관하게 덮어씁니다 (last-write-wins).

        Args:
            real: 실제 관측 (is_ghost=False)
            ghosts: 같은 실제 관측에서 파생된 고스트 관측

        Returns:
            id가 부여된 (실제 관측, 고스트 목록)
        """
        if real.is_ghost or not all(g.is_ghost for g in ghosts):
            raise ValueError("실제 관측 하나와 고스트 관측만 저장할 수 있습니다")

        async with self._connect() as db:
            try:
                cursor = await db.execute(INSERT_OBS, _obs_params(real))
                saved_real = real.model_copy(update={"id": cursor.lastrowid})
                saved_ghosts: List[Observation] = []
                for ghost in ghosts:
                    cursor = await db.execute(INSERT_OBS, _obs_params(ghost))
                    saved_ghosts.append(ghost.model_copy(update={"id": cursor.lastrowid}))
                await db.execute(
                    "UPDATE devices SET last_seen = ?, last_latitude = ?, last_longitude = ?, "
                    "last_accuracy = ? WHERE id = ?",
                    (_ts(real.observation_time), real.latitude,
                     real.longitude, real.accuracy, real.device_id)
                )
                await db.commit()
            except Exception:
                await db.rollback()
                raise
        return saved_real, saved_ghosts

    async def list_observations(self, device_id: int, *, limit: int = 50, offset: int = 0,
                                start: Optional[datetime] = None,
                                end: Optional[datetime] = None) -> List[Observation]:
        """
        관측을 최신순으로 조회합니다.

        Args:
            device_id: 디바이스 ID
            limit: 최대 개수
            offset: 건너뛸 개수
            start: 구간 시작 (포함)
            end: 구간 끝 (포함)

        Returns:
            관측 목록
        """
        sql = f"SELECT {OBS_COLUMNS} FROM observations WHERE device_id = ?"
        params: list = [device_id]
        if start is not None:
            sql += " AND observation_time >= ?"
            params.append(_ts(start))
        if end is not None:
            sql += " AND observation_time <= ?"
            params.append(_ts(end))
        sql += " ORDER BY observation_time DESC, id DESC LIMIT ? OFFSET ?"
        params.extend([limit, offset])

        async with self._connect() as db:
            cursor = await db.execute(sql, params)
            rows = await cursor.fetchall()
            return [_row_to_obs(r) for r in rows]

    async def count_observations(self, device_id: int, since: Optional[datetime] = None) -> int:
        async with self._connect() as db:
            if since is None:
                cursor = await db.execute(
                    "SELECT COUNT(*) FROM observations WHERE device_id = ?", (device_id,)
                )
            else:
                cursor = await db.execute(
                    "SELECT COUNT(*) FROM observations WHERE device_id = ? AND observation_time >= ?",
                    (device_id, _ts(since))
                )
            result = await cursor.fetchone()
            return result[0] if result else 0

    async def observation_time_bounds(self, device_id: int) -> Tuple[Optional[datetime], Optional[datetime]]:
        async with self._connect() as db:
            cursor = await db.execute(
                "SELECT MIN(observation_time), MAX(observation_time) FROM observations WHERE device_id = ?",
                (device_id,)
            )
            row = await cursor.fetchone()
            if not row:
                return None, None
            return _dt(row[0]), _dt(row[1])

    async def average_confidence(self, device_id: int) -> Optional[float]:
        async with self._connect() as db:
            cursor = await db.execute(
                "SELECT AVG(confidence) FROM observations WHERE device_id = ?", (device_id,)
            )
            row = await cursor.fetchone()
            return row[0] if row else None

    async def count_unique_reporters(self, device_id: int) -> int:
        async with self._connect() as db:
            cursor = await db.execute(
                "SELECT COUNT(DISTINCT reporter_hash) FROM observations "
                "WHERE device_id = ? AND reporter_hash IS NOT NULL",
                (device_id,)
            )
            row = await cursor.fetchone()
            return row[0] if row else 0

    async def latest_observation(self, device_id: int) -> Optional[Observation]:
        async with self._connect() as db:
            cursor = await db.execute(
                f"SELECT {OBS_COLUMNS} FROM observations WHERE device_id = ? "
                "ORDER BY observation_time DESC, id DESC LIMIT 1",
                (device_id,)
            )
            row = await cursor.fetchone()
            return _row_to_obs(row) if row else None

    async def delete_older_than(self, cutoff: datetime) -> int:
        """
        관측 시각이 cutoff 이전인 관측을 조건식으로 삭제합니다.

        Args:
            cutoff: 기준 시각

        Returns:
            삭제된 행 수
        """
        async with self._connect() as db:
            cursor = await db.execute(
                "DELETE FROM observations WHERE observation_time < ?", (_ts(cutoff),)
            )
            await db.commit()
            deleted = cursor.rowcount
            if deleted > 0:
                log.info(f"오래된 관측 {deleted}개 정리됨 cutoff:{cutoff.isoformat()}")
            return deleted

"""
SQLite-based notification store for SightGuard.

This module persists owner notifications so the external delivery
subsystem can pick them up, and purges old read notifications.
"""

import aiosqlite
from datetime import datetime
from typing import List
from sightguard.core.models import Notification, NotificationType
from sightguard.adapters.storage.sqlite_tracking import _dt, _ts
from sightguard.observability.logging_setup import get_logger

log = get_logger("sightguard.notifications")

# SQLite 스키마
SCHEMA = """
CREATE TABLE IF NOT EXISTS notifications (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    device_id INTEGER NOT NULL,
    owner_id INTEGER,
    type TEXT NOT NULL,
    title TEXT NOT NULL,
    message TEXT NOT NULL,
    action_url TEXT,
    action_text TEXT,
    read INTEGER NOT NULL DEFAULT 0,
    created_at REAL NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_notif_created ON notifications(created_at);
"""

class SQLiteNotificationStore:
    """SQLite 기반 알림 저장소"""

    def __init__(self, path: str):
        """
        초기화합니다.

        Args:
            path: SQLite 데이터베이스 파일 경로
        """
        self.path = path
        log.info(f"SQLiteNotificationStore 초기화: {path}")

    async def init(self) -> None:
        """데이터베이스를 초기화합니다."""
        async with aiosqlite.connect(self.path) as db:
            await db.executescript(SCHEMA)
            await db.commit()
        log.info(f"SQLiteNotificationStore 스키마 초기화 완료: {self.path}")

    async def create(self, notification: Notification) -> Notification:
        """
        알림을 저장합니다.

        Args:
            notification: 저장 전 알림

        Returns:
            id가 부여된 알림
        """
        async with aiosqlite.connect(self.path) as db:
            cursor = await db.execute(
                "INSERT INTO notifications (device_id, owner_id, type, title, message, "
                "action_url, action_text, read, created_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (notification.device_id, notification.owner_id, notification.type.value,
                 notification.title, notification.message, notification.action_url,
                 notification.action_text, 1 if notification.read else 0,
                 _ts(notification.created_at))
            )
            await db.commit()
            saved = notification.model_copy(update={"id": cursor.lastrowid})
        log.info(f"알림 생성됨 id:{saved.id} device:{saved.device_id} type:{saved.type.value}")
        return saved

    async def list_for_device(self, device_id: int) -> List[Notification]:
        """디바이스의 알림을 최신순으로 조회합니다."""
        async with aiosqlite.connect(self.path) as db:
            cursor = await db.execute(
                "SELECT id, device_id, owner_id, type, title, message, action_url, action_text, "
                "read, created_at FROM notifications WHERE device_id = ? ORDER BY created_at DESC, id DESC",
                (device_id,)
            )
            rows = await cursor.fetchall()
            return [
                Notification(
                    id=r[0], device_id=r[1], owner_id=r[2], type=NotificationType(r[3]),
                    title=r[4], message=r[5], action_url=r[6], action_text=r[7],
                    read=bool(r[8]), created_at=_dt(r[9]),
                )
                for r in rows
            ]

    async def mark_read(self, notification_id: int) -> None:
        async with aiosqlite.connect(self.path) as db:
            await db.execute("UPDATE notifications SET read = 1 WHERE id = ?", (notification_id,))
            await db.commit()

    async def delete_read_older_than(self, cutoff: datetime) -> int:
        """
        cutoff 이전에 생성된 읽은 알림을 삭제합니다.

        Args:
            cutoff: 기준 시각

        Returns:
            삭제된 항목 수
        """
        async with aiosqlite.connect(self.path) as db:
            cursor = await db.execute(
                "DELETE FROM notifications WHERE read = 1 AND created_at < ?", (_ts(cutoff),)
            )
            await db.commit()
            deleted = cursor.rowcount
            if deleted > 0:
                log.info(f"읽은 알림 {deleted}개 정리됨")
            return deleted

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from reminder_bot.errors import NotFound, StorageError
from reminder_bot.models.scheduled_message import ScheduledMessage
from reminder_bot.utils.dates import to_iso

logger = logging.getLogger(__name__)


class ScheduledMessageRepo:
    """
    Таблица scheduled_messages: единственный источник правды для recover().

    На каждый вызов своя сессия: срабатывания разных напоминаний идут
    параллельно на одном event loop, общую AsyncSession делить нельзя.
    """

    def __init__(self, sessions: async_sessionmaker[AsyncSession]) -> None:
        self.sessions = sessions

    async def create(self, recipient_id: int, text: str, fire_at: datetime) -> ScheduledMessage:
        r = ScheduledMessage(
            recipient_id=recipient_id,
            text=text,
            fire_at=to_iso(fire_at),
            sent=False,
            failed=False,
        )
        try:
            async with self.sessions() as s:
                s.add(r)
                await s.commit()
                await s.refresh(r)
        except SQLAlchemyError as e:
            raise StorageError(f"Не удалось сохранить напоминание: {e}") from e
        return r

    async def get(self, rid: int) -> Optional[ScheduledMessage]:
        try:
            async with self.sessions() as s:
                return await s.get(ScheduledMessage, rid)
        except SQLAlchemyError as e:
            raise StorageError(f"Не удалось прочитать напоминание #{rid}: {e}") from e

    async def list_pending(self) -> list[ScheduledMessage]:
        try:
            async with self.sessions() as s:
                q = await s.execute(
                    select(ScheduledMessage)
                    .where(ScheduledMessage.sent.is_(False), ScheduledMessage.failed.is_(False))
                    .order_by(ScheduledMessage.id)
                )
                return list(q.scalars().all())
        except SQLAlchemyError as e:
            raise StorageError(f"Не удалось загрузить очередь напоминаний: {e}") from e

    async def mark_sent(self, rid: int) -> None:
        await self._finish(rid, sent=True)

    async def mark_failed(self, rid: int) -> None:
        await self._finish(rid, failed=True)

    async def _finish(self, rid: int, **values: bool) -> None:
        # Обновляем только pending-строку: статус монотонный, sent/failed терминальны
        try:
            async with self.sessions() as s:
                res = await s.execute(
                    update(ScheduledMessage)
                    .where(
                        ScheduledMessage.id == rid,
                        ScheduledMessage.sent.is_(False),
                        ScheduledMessage.failed.is_(False),
                    )
                    .values(**values)
                )
                await s.commit()
        except SQLAlchemyError as e:
            raise StorageError(f"Не удалось обновить напоминание #{rid}: {e}") from e
        if not res.rowcount:
            raise NotFound(f"Напоминание #{rid} не найдено среди pending")

    async def delete(self, rid: int) -> bool:
        try:
            async with self.sessions() as s:
                res = await s.execute(delete(ScheduledMessage).where(ScheduledMessage.id == rid))
                await s.commit()
        except SQLAlchemyError as e:
            raise StorageError(f"Не удалось удалить напоминание #{rid}: {e}") from e
        removed = bool(res.rowcount)
        logger.debug("delete reminder_id=%s removed=%s", rid, removed)
        return removed

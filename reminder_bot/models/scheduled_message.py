from __future__ import annotations

import enum
from datetime import date, datetime

from sqlalchemy import BigInteger, Boolean, Date, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from reminder_bot.models.base import Base
from reminder_bot.utils.dates import from_iso


class ReminderStatus(str, enum.Enum):
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"


class ScheduledMessage(Base):
    __tablename__ = "scheduled_messages"
    # без AUTOINCREMENT sqlite переиспользует id удалённых строк
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # chat id в Telegram бывает больше 32 бит
    recipient_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    text: Mapped[str] = mapped_column(Text, nullable=False)

    # ISO-8601 в UTC со смещением: 2026-10-19T16:30:00+00:00
    fire_at: Mapped[str] = mapped_column(String(40), nullable=False)

    # оба false = pending, ровно один true = терминальный статус
    sent: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    failed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[date] = mapped_column(
        Date, nullable=False, server_default=func.current_date()
    )

    @property
    def status(self) -> ReminderStatus:
        if self.sent:
            return ReminderStatus.SENT
        if self.failed:
            return ReminderStatus.FAILED
        return ReminderStatus.PENDING

    @property
    def is_pending(self) -> bool:
        return not self.sent and not self.failed

    @property
    def fire_at_utc(self) -> datetime:
        return from_iso(self.fire_at)

    def __repr__(self) -> str:
        return (
            f"<ScheduledMessage id={self.id} recipient={self.recipient_id} "
            f"fire_at={self.fire_at} status={self.status.value}>"
        )

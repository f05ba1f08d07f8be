# reminder_bot/services/delivery.py
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from aiogram.client.bot import Bot
from aiogram.exceptions import AiogramError

from reminder_bot.errors import DeliveryError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeliveryReceipt:
    recipient_id: int
    message_id: int
    sent_at: datetime


class DeliveryDispatcher:
    """
    Отправка текста напоминания в Telegram.
    Одна попытка: любая ошибка транспорта -> DeliveryError, ретраев нет.
    """

    def __init__(self, bot: Bot, prefix: str = "⏰ Напоминание: "):
        self.bot = bot
        self.prefix = prefix

    def render(self, text: str) -> str:
        return f"{self.prefix}{text}"

    async def deliver(self, recipient_id: int, text: str) -> DeliveryReceipt:
        try:
            # текст пользовательский, поэтому без HTML-разметки
            msg = await self.bot.send_message(
                chat_id=recipient_id,
                text=self.render(text),
                parse_mode=None,
            )
        except (AiogramError, OSError, asyncio.TimeoutError) as e:
            raise DeliveryError(f"Не удалось отправить в чат {recipient_id}: {e}") from e
        return DeliveryReceipt(
            recipient_id=recipient_id,
            message_id=msg.message_id,
            sent_at=msg.date,
        )


class OperatorNotifier:
    """Алерты владельцу бота. Best-effort: сам никогда не падает."""

    def __init__(self, bot: Bot, chat_id: Optional[int]):
        self.bot = bot
        self.chat_id = chat_id

    async def notify(self, text: str) -> None:
        if not self.chat_id:
            return
        try:
            await self.bot.send_message(chat_id=self.chat_id, text=text, parse_mode=None)
        except Exception:
            logger.exception("operator notification failed")

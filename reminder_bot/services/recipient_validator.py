# reminder_bot/services/recipient_validator.py
from __future__ import annotations

import logging

from aiogram.client.bot import Bot

logger = logging.getLogger(__name__)


class RecipientValidator:
    """Проверяем, что чат ещё жив, перед тем как слать в него напоминание."""

    def __init__(self, bot: Bot):
        self.bot = bot

    async def is_reachable(self, recipient_id: int) -> bool:
        # Любая ошибка пробы = недоступен. Лучше не отправить, чем слать в никуда.
        try:
            await self.bot.get_chat(recipient_id)
            return True
        except Exception as e:
            logger.warning("recipient %s unreachable: %s", recipient_id, e)
            return False

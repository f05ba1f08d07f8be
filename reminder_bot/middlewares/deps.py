# reminder_bot/middlewares/deps.py
from typing import Any, Callable, Dict, Awaitable
from aiogram import BaseMiddleware
from aiogram.types import TelegramObject


class DepsMiddleware(BaseMiddleware):
    def __init__(self, *, services: Dict[str, Any]) -> None:
        self.services = services

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any],
    ) -> Any:
        # Инжектим сервисы по тем ключам, которые ждут хендлеры
        # Пример: async def cmd_remind(message: Message, reminders: ReminderService)
        for k, v in self.services.items():
            data[k] = v

        return await handler(event, data)

# reminder_bot/container.py
from __future__ import annotations

from typing import Any

from aiogram import Bot, Dispatcher
from aiogram.fsm.storage.base import BaseStorage
from aiogram.fsm.storage.memory import MemoryStorage
from aiogram.fsm.storage.redis import RedisStorage
from apscheduler.schedulers.base import BaseScheduler
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from reminder_bot.config import Settings, settings
from reminder_bot.db import SessionLocal, engine, init_db  # реэкспорт для main.py
from reminder_bot.repositories.scheduled_message_repo import ScheduledMessageRepo
from reminder_bot.services.delivery import DeliveryDispatcher, OperatorNotifier
from reminder_bot.services.recipient_validator import RecipientValidator
from reminder_bot.services.reminder_service import ReminderService

__all__ = ["build_dp", "build_services", "init_db", "SessionLocal", "engine"]


async def build_dp(bot: Bot) -> Dispatcher:
    """
    Собираем Dispatcher для aiogram 3.x.
    Redis нужен только если задан REDIS_DSN, иначе FSM в памяти.
    """
    storage: BaseStorage
    if settings.REDIS_DSN:
        storage = RedisStorage.from_url(settings.REDIS_DSN)
    else:
        storage = MemoryStorage()
    return Dispatcher(storage=storage)


def build_services(
    bot: Bot,
    scheduler: BaseScheduler,
    sessions: async_sessionmaker[AsyncSession] = SessionLocal,
    cfg: Settings = settings,
) -> dict[str, Any]:
    """
    Единая сборка сервисов и репозиториев. Возвращаем словарь.
    """
    # repos
    repo = ScheduledMessageRepo(sessions)

    # services
    notifier = OperatorNotifier(bot, cfg.OWNER_ID) if cfg.NOTIFY_OWNER_ON_FAILURE else None
    reminders = ReminderService(
        scheduler,
        repo,
        RecipientValidator(bot),
        DeliveryDispatcher(bot, prefix=cfg.REMINDER_PREFIX),
        notifier=notifier,
        default_recipient=cfg.OWNER_ID,
    )

    return {
        "reminders": reminders,
        "repos": {
            "scheduled_messages": repo,
        },
    }

# reminder_bot/db.py
from __future__ import annotations

from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession, AsyncEngine
from reminder_bot.config import settings
from reminder_bot.models.base import Base


# === 1. Настройка движка ===
# Пример DSN: postgresql+asyncpg://app:app@db:5432/app
# Локально хватает sqlite+aiosqlite:///./reminders.db
def make_engine(url: str, *, echo: bool = False) -> AsyncEngine:
    return create_async_engine(
        url,
        echo=echo,
        pool_pre_ping=True,
    )


def make_sessionmaker(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=bind,
        class_=AsyncSession,
        expire_on_commit=False,
    )


engine = make_engine(settings.DATABASE_URL, echo=settings.SQL_ECHO)


# === 2. Сессия ===
SessionLocal = make_sessionmaker(engine)


async def init_db(bind: AsyncEngine | None = None) -> None:
    """
    Dev-инициализация БД: создаём таблицы, если их нет.
    В проде используй alembic upgrade head.
    """
    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

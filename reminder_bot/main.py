# reminder_bot/main.py
from __future__ import annotations

import asyncio
import logging
import signal

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode
from aiogram.types import BotCommand

from reminder_bot.config import settings
from reminder_bot.core.logging import setup_logging
from reminder_bot.container import build_dp, build_services, init_db, engine
from reminder_bot.errors import StorageError
from reminder_bot.middlewares.deps import DepsMiddleware
from reminder_bot.middlewares.logging import LoggingMiddleware
from reminder_bot.scheduler.jobs import build_scheduler
from reminder_bot.services.reminder_service import ReminderService

from reminder_bot.handlers import id_cmd
from reminder_bot.handlers.reminders import router as reminders_router
from reminder_bot.handlers.errors import router as errors_router

# ---- Логи первыми ----
setup_logging()
logger = logging.getLogger("reminder_bot.main")


async def setup_bot_commands(bot: Bot) -> None:
    await bot.set_my_commands(
        [
            BotCommand(command="remind", description="Поставить напоминание"),
            BotCommand(command="reminders", description="Список напоминаний"),
            BotCommand(command="unremind", description="Отменить напоминание"),
            BotCommand(command="id", description="Показать ID"),
        ]
    )


async def main() -> None:
    logger.info(
        "boot: starting with LOG_LEVEL=%s SQL_ECHO=%s reminders_tz=%s",
        settings.log_level,
        settings.SQL_ECHO,
        settings.REMINDERS_TZ,
    )

    bot = Bot(
        token=settings.BOT_TOKEN,
        default=DefaultBotProperties(parse_mode=ParseMode.HTML),
    )

    # На всякий: сносим вебхук, чтобы polling не конфликтовал
    try:
        await bot.delete_webhook(drop_pending_updates=True)
    except Exception:
        logger.warning("delete_webhook failed; continue with polling")

    dp: Dispatcher = await build_dp(bot)

    # DB init: в проде миграции через Alembic, create_all только если явно включили
    if settings.INIT_DB_ON_START:
        try:
            await init_db()
            logger.info("DB init done (create_all enabled by ENV)")
        except Exception:
            logger.exception("DB init failed (dev-only path)")
    else:
        logger.info("DB init skipped (use alembic upgrade head)")

    # ---------- Scheduler ----------
    scheduler = build_scheduler(settings.SCHEDULER_TZ)
    services = build_services(bot, scheduler)
    reminders: ReminderService = services["reminders"]

    # recover строго до приёма команд: без состояния из БД стартовать нельзя
    try:
        await reminders.recover()
    except StorageError:
        logger.exception("recover failed, abort startup")
        await bot.session.close()
        await engine.dispose()
        raise

    scheduler.start()

    # Middlewares
    dp.update.outer_middleware(LoggingMiddleware())
    dp.update.middleware(DepsMiddleware(services={"reminders": reminders}))

    # Routers: порядок важен
    dp.include_routers(
        id_cmd.router,
        reminders_router,
        errors_router,
    )

    await setup_bot_commands(bot)
    logger.info("Commands set, start polling")

    # Корректное завершение по сигналам
    stop_evt = asyncio.Event()
    loop = asyncio.get_running_loop()

    def _stop(*_: object) -> None:
        stop_evt.set()

    for sig in (signal.SIGTERM, signal.SIGINT):
        try:
            loop.add_signal_handler(sig, _stop)
        except NotImplementedError:
            pass

    async def _poll():
        try:
            await dp.start_polling(bot, handle_signals=False)
        except asyncio.CancelledError:
            pass

    poll_task = asyncio.create_task(_poll())
    await stop_evt.wait()

    # ---------- Shutdown ----------
    try:
        await dp.stop_polling()
    except RuntimeError:
        logger.warning("polling was not started")

    # Останавливаем scheduler; pending-напоминания поднимет следующий recover()
    try:
        scheduler.shutdown(wait=False)
    except Exception:
        logger.exception("scheduler shutdown failed")

    if not poll_task.done():
        poll_task.cancel()
        try:
            await poll_task
        except asyncio.CancelledError:
            pass

    # graceful storage
    try:
        await dp.storage.close()
    except Exception:
        logger.exception("storage close failed")

    # close bot session
    try:
        await bot.session.close()
    except Exception:
        logger.exception("bot session close failed")

    # dispose engine
    try:
        await engine.dispose()
    except Exception:
        logger.exception("engine dispose failed")


if __name__ == "__main__":
    asyncio.run(main())

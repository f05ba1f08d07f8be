import logging
import sys
from logging.config import dictConfig

from reminder_bot.config import settings

CTX_FIELDS = ("update_id", "user_id", "reminder_id")


def setup_logging() -> None:
    """Базовая настройка логирования всего приложения."""
    level = settings.log_level.upper()

    if settings.log_json:
        formatter = {
            "()": "pythonjsonlogger.jsonlogger.JsonFormatter",
            "fmt": "%(asctime)s %(levelname)s %(name)s %(message)s "
                   "%(update_id)s %(user_id)s %(reminder_id)s",
            "json_ensure_ascii": False,
        }
    else:
        formatter = {
            "format": "%(asctime)s | %(levelname)5s | %(name)s | %(message)s "
                      "| upd=%(update_id)s user=%(user_id)s rem=%(reminder_id)s",
        }

    dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"default": formatter},
        "filters": {"ctx": {"()": CtxFilter}},
        "handlers": {
            "stdout": {
                "class": "logging.StreamHandler",
                "stream": sys.stdout,
                "formatter": "default",
                "filters": ["ctx"],
            }
        },
        "root": {"level": level, "handlers": ["stdout"]},
        "loggers": {
            # Для SQLAlchemy можно включить подробности при отладке:
            "sqlalchemy.engine": {"level": settings.log_sql.upper()},
            # Для aiogram: INFO или DEBUG, если нужно видеть апдейты:
            "aiogram": {"level": settings.log_aiogram.upper()},
            # APScheduler на INFO пишет про каждый запуск джобы
            "apscheduler": {"level": settings.log_apscheduler.upper()},
            # Для наших модулей:
            "reminder_bot": {"level": level},
        },
    })


class CtxFilter(logging.Filter):
    """Добавляет безопасные поля, чтобы форматтер не падал, когда нет extra."""
    def filter(self, record: logging.LogRecord) -> bool:
        for k in CTX_FIELDS:
            if not hasattr(record, k):
                setattr(record, k, "-")
        return True

from __future__ import annotations
from typing import List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _parse_csv_ints(value: str | List[int] | None) -> List[int]:
    if value is None or value == "":
        return []
    if isinstance(value, (list, tuple)):
        return [int(x) for x in value]
    if isinstance(value, int):
        return [value]
    parts = [p.strip() for p in str(value).split(",") if p.strip()]
    return [int(p) for p in parts]


class Settings(BaseSettings):
    # === Telegram ===
    BOT_TOKEN: str = ""
    # чат владельца: получатель по умолчанию и канал для алертов
    OWNER_ID: Optional[int] = None
    ADMINS: List[int] = Field(default_factory=list)

    # === Storage / DB ===
    DATABASE_URL: Optional[str] = None
    POSTGRES_DSN: Optional[str] = None
    INIT_DB_ON_START: bool = False

    REDIS_DSN: Optional[str] = None  # без redis живём на MemoryStorage

    # === Планировщик / напоминания ===
    SCHEDULER_TZ: str = "UTC"
    # в этой зоне трактуем «гражданское» время из команд
    REMINDERS_TZ: str = "Europe/Vienna"
    REMINDER_PREFIX: str = "⏰ Напоминание: "
    NOTIFY_OWNER_ON_FAILURE: bool = True

    # === Отладка SQL ===
    SQL_ECHO: bool = False

    # === Логи ===
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_json: bool = Field(default=False, alias="LOG_JSON")
    log_sql: str = Field(default="WARNING", alias="LOG_SQL")
    log_aiogram: str = Field(default="INFO", alias="LOG_AIOGRAM")
    log_apscheduler: str = Field(default="WARNING", alias="LOG_APSCHEDULER")

    # ---- валидаторы ДО валидации типов ----
    @field_validator("ADMINS", mode="before")
    @classmethod
    def _v_admins(cls, v):
        return _parse_csv_ints(v)

    @field_validator("REMINDERS_TZ", "SCHEDULER_TZ")
    @classmethod
    def _v_tz(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Неизвестная таймзона: {v}") from e
        return v

    # ---- пост-обработчик ----
    def model_post_init(self, __context) -> None:
        # совместимость DSN/URL
        if not self.DATABASE_URL and self.POSTGRES_DSN:
            self.DATABASE_URL = self.POSTGRES_DSN
        if not self.DATABASE_URL:
            self.DATABASE_URL = "sqlite+aiosqlite:///./reminders.db"

    @property
    def reminders_zone(self) -> ZoneInfo:
        return ZoneInfo(self.REMINDERS_TZ)

    def is_admin(self, user_id: int) -> bool:
        return user_id == self.OWNER_ID or user_id in set(self.ADMINS)

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )


settings = Settings()

from __future__ import annotations

import os
import sys
from logging.config import fileConfig
from pathlib import Path
from datetime import datetime, timezone

from alembic import context
from sqlalchemy import engine_from_config, pool

# ------------------------------------------------------------------------------
# PYTHONPATH и базовая диагностика процесса
# ------------------------------------------------------------------------------
PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

BOOT_BANNER = f"""
=== ALEMBIC ENV BOOT ===
time: {datetime.now(timezone.utc).isoformat()}
pid: {os.getpid()}
cwd: {os.getcwd()}
env.py: {Path(__file__).resolve()}
========================
"""
print(BOOT_BANNER, flush=True)

# ------------------------------------------------------------------------------
# Alembic config + логирование
# ------------------------------------------------------------------------------
config = context.config
if config.config_file_name and os.path.exists(config.config_file_name):
    try:
        fileConfig(config.config_file_name)
    except Exception as e:
        print(f"[env.py] fileConfig error: {e}", flush=True)

# ------------------------------------------------------------------------------
# Грузим Base вместе с моделями (models/__init__ импортирует все)
# ------------------------------------------------------------------------------
from reminder_bot.models import Base  # noqa: E402

tables = sorted(Base.metadata.tables.keys())
print("[env.py] tables in Base.metadata:", tables, flush=True)

# Если ключевые таблицы не видны, валимся громко
required = {"scheduled_messages"}
missing = required.difference(tables)
if missing:
    raise RuntimeError(f"[env.py] Missing tables in Base.metadata: {missing}")

# ------------------------------------------------------------------------------
# DSN конверсия: alembic гоняем синхронным драйвером
# ------------------------------------------------------------------------------
def _to_sync_dsn(dsn: str) -> str:
    if "+asyncpg" in dsn:
        return dsn.replace("+asyncpg", "+psycopg")
    if "+aiosqlite" in dsn:
        return dsn.replace("+aiosqlite", "")
    return dsn

env_url = os.getenv("DATABASE_URL") or os.getenv("POSTGRES_DSN")
if not env_url:
    env_url = "sqlite:///./reminders.db"
config.set_main_option("sqlalchemy.url", _to_sync_dsn(env_url))

# ------------------------------------------------------------------------------
# MetaData
# ------------------------------------------------------------------------------
target_metadata = Base.metadata

# ------------------------------------------------------------------------------
# Миграции
# ------------------------------------------------------------------------------
def run_migrations_offline() -> None:
    url = config.get_main_option("sqlalchemy.url")
    print(f"[env.py] offline migrations, url={url}", flush=True)
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
        compare_server_default=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = engine_from_config(
        config.get_section(config.config_ini_section),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        print(f"[env.py] online migrations, dsn={connection.engine.url}", flush=True)
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
            compare_server_default=True,
            render_as_batch=connection.dialect.name == "sqlite",
        )
        with context.begin_transaction():
            print("[env.py] running migrations...", flush=True)
            context.run_migrations()
            print("[env.py] migrations done.", flush=True)


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()

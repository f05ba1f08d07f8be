# reminder_bot/scheduler/jobs.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Awaitable, Callable

from apscheduler.job import Job
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.date import DateTrigger


def build_scheduler(tz: str = "UTC") -> AsyncIOScheduler:
    """Один планировщик на процесс. Стартует main() после recover()."""
    return AsyncIOScheduler(timezone=tz)


def reminder_job_id(rid: int) -> str:
    return f"reminder:{rid}"


def add_reminder_job(
    scheduler: AsyncIOScheduler,
    func: Callable[..., Awaitable[Any]],
    rid: int,
    run_at: datetime,
) -> Job:
    """
    Разовая задача на конкретный момент.
    misfire_grace_time=None: просроченные (после рестарта/под нагрузкой) всё равно выполняются.
    """
    return scheduler.add_job(
        func,
        trigger=DateTrigger(run_date=run_at, timezone=timezone.utc),
        args=[rid],
        id=reminder_job_id(rid),
        name=f"reminder #{rid}",
        replace_existing=True,
        coalesce=True,
        max_instances=1,
        misfire_grace_time=None,
    )

"""Pytest configuration and fixtures."""

from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock

import pytest
import pytest_asyncio
from aiogram.exceptions import TelegramBadRequest
from apscheduler.jobstores.base import JobLookupError

from reminder_bot.db import init_db, make_engine, make_sessionmaker
from reminder_bot.repositories.scheduled_message_repo import ScheduledMessageRepo
from reminder_bot.services.delivery import DeliveryDispatcher, OperatorNotifier
from reminder_bot.services.recipient_validator import RecipientValidator
from reminder_bot.services.reminder_service import ReminderService

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)
OWNER_CHAT = 777
DEAD_CHAT = -1


class FakeJob:
    def __init__(self, scheduler, func, args, job_id, run_date):
        self.scheduler = scheduler
        self.func = func
        self.args = args
        self.id = job_id
        self.run_date = run_date
        self.removed = False

    def remove(self):
        if self.removed or self.id not in self.scheduler.jobs:
            raise JobLookupError(self.id)
        self.removed = True
        del self.scheduler.jobs[self.id]

    async def run(self):
        # как APScheduler: разовая задача выкидывается из стора перед запуском
        self.scheduler.jobs.pop(self.id, None)
        return await self.func(*self.args)


class FakeScheduler:
    """Запоминает add_job вместо реальных таймеров."""

    def __init__(self):
        self.jobs = {}
        self.added = []

    def add_job(self, func, trigger=None, args=None, id=None, **kwargs):
        job = FakeJob(self, func, args or [], id, trigger.run_date)
        self.jobs[id] = job
        self.added.append(job)
        return job

    async def run_all(self):
        for job in list(self.jobs.values()):
            await job.run()


def make_bot():
    bot = Mock()

    async def get_chat(chat_id):
        if chat_id == DEAD_CHAT:
            raise TelegramBadRequest(method=Mock(), message="Bad Request: chat not found")
        return SimpleNamespace(id=chat_id)

    bot.get_chat = AsyncMock(side_effect=get_chat)
    bot.send_message = AsyncMock(
        side_effect=lambda chat_id, text, **kw: SimpleNamespace(message_id=100, chat_id=chat_id, date=NOW)
    )
    return bot


@pytest_asyncio.fixture
async def sessions(tmp_path):
    engine = make_engine(f"sqlite+aiosqlite:///{tmp_path / 'reminders.db'}")
    await init_db(engine)
    yield make_sessionmaker(engine)
    await engine.dispose()


@pytest.fixture
def repo(sessions):
    return ScheduledMessageRepo(sessions)


@pytest.fixture
def bot():
    return make_bot()


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def notifier(bot):
    n = OperatorNotifier(bot, OWNER_CHAT)
    n.notify = AsyncMock()
    return n


@pytest.fixture
def service(scheduler, repo, bot, notifier):
    return ReminderService(
        scheduler,
        repo,
        RecipientValidator(bot),
        DeliveryDispatcher(bot),
        notifier=notifier,
        default_recipient=OWNER_CHAT,
        clock=lambda: NOW,
    )


@pytest.fixture
def now():
    return NOW

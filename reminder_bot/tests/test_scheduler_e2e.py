"""End-to-end: real AsyncIOScheduler, real SQLite, fake Telegram."""

import asyncio
from datetime import timedelta

import pytest
import pytest_asyncio

from reminder_bot.models import ReminderStatus
from reminder_bot.scheduler.jobs import build_scheduler
from reminder_bot.services.delivery import DeliveryDispatcher
from reminder_bot.services.recipient_validator import RecipientValidator
from reminder_bot.services.reminder_service import ReminderService
from reminder_bot.utils.dates import now_utc


@pytest_asyncio.fixture
async def live(repo, bot):
    scheduler = build_scheduler("UTC")
    svc = ReminderService(scheduler, repo, RecipientValidator(bot), DeliveryDispatcher(bot))
    await svc.recover()
    scheduler.start()
    yield svc
    scheduler.shutdown(wait=False)


async def _wait_for(predicate, timeout=3.0):
    deadline = asyncio.get_running_loop().time() + timeout
    while asyncio.get_running_loop().time() < deadline:
        if await predicate():
            return True
        await asyncio.sleep(0.05)
    return False


@pytest.mark.asyncio
async def test_reminder_fires_on_time_and_is_marked_sent(live, repo, bot):
    rec = await live.schedule(42, "Buy cheese", now_utc() + timedelta(milliseconds=300))

    # не раньше fire_at
    await asyncio.sleep(0.1)
    bot.send_message.assert_not_awaited()

    async def sent():
        return (await repo.get(rec.id)).status is ReminderStatus.SENT

    assert await _wait_for(sent)
    assert rec.id not in live.jobs
    bot.send_message.assert_awaited_once()


@pytest.mark.asyncio
async def test_invalid_recipient_ends_failed(live, repo, bot):
    rec = await live.schedule(-1, "nobody", now_utc() + timedelta(milliseconds=200))

    async def failed():
        return (await repo.get(rec.id)).status is ReminderStatus.FAILED

    assert await _wait_for(failed)
    bot.send_message.assert_not_awaited()


@pytest.mark.asyncio
async def test_past_due_fires_immediately(live, repo):
    rec = await live.schedule(42, "late", now_utc() - timedelta(hours=1))

    async def sent():
        return (await repo.get(rec.id)).status is ReminderStatus.SENT

    assert await _wait_for(sent, timeout=1.5)


@pytest.mark.asyncio
async def test_cancelled_reminder_never_fires(live, repo, bot):
    rec = await live.schedule(42, "nope", now_utc() + timedelta(milliseconds=300))

    assert await live.cancel(rec.id) is True
    await asyncio.sleep(0.6)

    bot.send_message.assert_not_awaited()
    assert await repo.get(rec.id) is None

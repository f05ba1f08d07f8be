"""Tests for the scheduled_messages repository."""

from datetime import date, datetime, timedelta, timezone

import pytest

from reminder_bot.db import make_engine, make_sessionmaker
from reminder_bot.errors import NotFound, StorageError
from reminder_bot.models import ReminderStatus
from reminder_bot.repositories.scheduled_message_repo import ScheduledMessageRepo


@pytest.mark.asyncio
async def test_create_inserts_pending_row(repo, now):
    rec = await repo.create(42, "Buy cheese", now + timedelta(hours=1))

    assert rec.id is not None
    assert rec.status is ReminderStatus.PENDING
    assert rec.is_pending
    assert rec.recipient_id == 42
    assert isinstance(rec.created_at, date)

    stored = await repo.get(rec.id)
    assert stored.text == "Buy cheese"
    assert stored.fire_at_utc == now + timedelta(hours=1)


@pytest.mark.asyncio
async def test_fire_at_normalized_to_utc_iso(repo):
    vienna_summer = timezone(timedelta(hours=2))
    rec = await repo.create(1, "x", datetime(2026, 7, 1, 18, 30, tzinfo=vienna_summer))

    assert rec.fire_at == "2026-07-01T16:30:00+00:00"
    assert rec.fire_at_utc == datetime(2026, 7, 1, 16, 30, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_ids_are_not_reused(repo, now):
    first = await repo.create(1, "a", now)
    await repo.delete(first.id)
    second = await repo.create(1, "b", now)

    assert second.id != first.id


@pytest.mark.asyncio
async def test_list_pending_skips_terminal_rows(repo, now):
    a = await repo.create(1, "a", now)
    b = await repo.create(1, "b", now)
    c = await repo.create(1, "c", now)
    await repo.mark_sent(a.id)
    await repo.mark_failed(b.id)

    pending = await repo.list_pending()

    assert [r.id for r in pending] == [c.id]


@pytest.mark.asyncio
async def test_status_is_monotonic(repo, now):
    rec = await repo.create(1, "a", now)
    await repo.mark_sent(rec.id)

    with pytest.raises(NotFound):
        await repo.mark_failed(rec.id)
    with pytest.raises(NotFound):
        await repo.mark_sent(rec.id)

    stored = await repo.get(rec.id)
    assert stored.status is ReminderStatus.SENT
    assert stored.sent and not stored.failed


@pytest.mark.asyncio
async def test_mark_after_delete_is_not_found(repo, now):
    rec = await repo.create(1, "a", now)
    assert await repo.delete(rec.id) is True

    with pytest.raises(NotFound):
        await repo.mark_sent(rec.id)
    assert await repo.get(rec.id) is None


@pytest.mark.asyncio
async def test_delete_reports_whether_row_existed(repo):
    assert await repo.delete(12345) is False


@pytest.mark.asyncio
async def test_storage_errors_are_wrapped(tmp_path, now):
    # таблицы нет: init_db не вызывали
    engine = make_engine(f"sqlite+aiosqlite:///{tmp_path / 'empty.db'}")
    broken = ScheduledMessageRepo(make_sessionmaker(engine))
    try:
        with pytest.raises(StorageError):
            await broken.create(1, "a", now)
        with pytest.raises(StorageError):
            await broken.list_pending()
    finally:
        await engine.dispose()

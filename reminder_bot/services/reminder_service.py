# reminder_bot/services/reminder_service.py
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from apscheduler.schedulers.base import BaseScheduler

from reminder_bot.errors import (
    DeliveryError,
    NotFound,
    ReminderError,
    SchedulerNotReady,
    ValidationFailure,
)
from reminder_bot.models.scheduled_message import ScheduledMessage
from reminder_bot.repositories.scheduled_message_repo import ScheduledMessageRepo
from reminder_bot.scheduler.jobs import add_reminder_job
from reminder_bot.scheduler.registry import JobRegistry
from reminder_bot.services.delivery import DeliveryDispatcher, OperatorNotifier
from reminder_bot.services.recipient_validator import RecipientValidator
from reminder_bot.utils.dates import as_utc, now_utc

logger = logging.getLogger(__name__)


class ReminderService:
    """
    Жизненный цикл напоминания:
      pending (в БД, задача взведена) -> срабатывание -> sent | failed.
    Отмена = удаление строки + снятие задачи.

    БД: источник правды, задачи в APScheduler эфемерны и пересобираются
    в recover() на каждом старте. Второй процесс на ту же БД продублирует
    отправки: координации между процессами нет.
    """

    def __init__(
        self,
        scheduler: BaseScheduler,
        repo: ScheduledMessageRepo,
        validator: RecipientValidator,
        dispatcher: DeliveryDispatcher,
        *,
        notifier: Optional[OperatorNotifier] = None,
        default_recipient: Optional[int] = None,
        clock: Callable[[], datetime] = now_utc,
    ):
        self.scheduler = scheduler
        self.repo = repo
        self.validator = validator
        self.dispatcher = dispatcher
        self.notifier = notifier
        self.default_recipient = default_recipient
        self.clock = clock
        self.jobs = JobRegistry()
        self._recovered = False

    @property
    def ready(self) -> bool:
        return self._recovered

    # ---------- ядро ----------

    async def schedule(self, recipient_id: int, text: str, fire_at: datetime) -> ScheduledMessage:
        """
        Пишем pending-запись и взводим разовую задачу.
        Время в прошлом не ошибка: задержка 0, уйдёт на ближайшем тике.
        Если запись в БД не удалась, задача не взводится (StorageError летит наверх).
        """
        if not text or not text.strip():
            raise ReminderError("Текст напоминания пустой")
        fire_at = as_utc(fire_at)

        record = await self.repo.create(recipient_id, text, fire_at)
        self._arm(record.id, fire_at)
        logger.info(
            "scheduled reminder_id=%s recipient=%s fire_at=%s",
            record.id, recipient_id, record.fire_at,
            extra={"reminder_id": record.id},
        )
        return record

    async def cancel(self, rid: int) -> bool:
        """True только если строка реально удалена из БД."""
        had_job = self.jobs.cancel(rid)
        removed = await self.repo.delete(rid)
        logger.info(
            "cancel reminder_id=%s job=%s removed=%s", rid, had_job, removed,
            extra={"reminder_id": rid},
        )
        return removed

    async def recover(self) -> int:
        """
        Вызывается ровно один раз на старте, до приёма add/remove.
        Повторный вызов в том же процессе взвёл бы задачи второй раз, поэтому запрещаем.
        StorageError не ловим: без БД стартовать нельзя.
        """
        if self._recovered:
            raise RuntimeError("recover() уже вызывался в этом процессе")

        pending = await self.repo.list_pending()
        now = self.clock()
        overdue = 0
        for r in pending:
            fire_at = r.fire_at_utc
            if fire_at <= now:
                overdue += 1
            self._arm(r.id, fire_at, now=now)

        self._recovered = True
        logger.info("recovered %s pending reminders (%s overdue, fire now)", len(pending), overdue)
        return len(pending)

    def _arm(self, rid: int, fire_at: datetime, *, now: Optional[datetime] = None) -> None:
        now = now or self.clock()
        delay = max(timedelta(0), fire_at - now)
        job = add_reminder_job(self.scheduler, self._fire, rid, now + delay)
        self.jobs.register(rid, job)
        logger.debug("armed reminder_id=%s delay=%s", rid, delay, extra={"reminder_id": rid})

    # ---------- срабатывание ----------

    async def _fire(self, rid: int) -> None:
        """Колбэк APScheduler. Вызывающего нет, поэтому наружу ничего не бросаем."""
        try:
            await self._fire_once(rid)
        except Exception:
            # запись остаётся pending, подберём на следующем recover()
            logger.exception("firing failed reminder_id=%s", rid, extra={"reminder_id": rid})
        finally:
            self.jobs.remove(rid)

    async def _fire_once(self, rid: int) -> None:
        record = await self.repo.get(rid)
        if record is None or not record.is_pending:
            # отменили раньше, чем задача стартовала, или уже обработано
            logger.info("skip reminder_id=%s: not pending", rid, extra={"reminder_id": rid})
            return

        try:
            if not await self.validator.is_reachable(record.recipient_id):
                raise ValidationFailure(f"Чат {record.recipient_id} недоступен")
            receipt = await self.dispatcher.deliver(record.recipient_id, record.text)
        except (ValidationFailure, DeliveryError) as e:
            logger.warning("reminder_id=%s failed: %s", rid, e, extra={"reminder_id": rid})
            if await self._finish(self.repo.mark_failed, rid):
                await self._report(record, e)
            return

        if await self._finish(self.repo.mark_sent, rid):
            logger.info(
                "sent reminder_id=%s message_id=%s", rid, receipt.message_id,
                extra={"reminder_id": rid},
            )

    async def _finish(self, mark: Callable, rid: int) -> bool:
        try:
            await mark(rid)
        except NotFound:
            # строку удалили параллельно (cancel победил), молча ок
            logger.info("reminder_id=%s vanished before status update", rid, extra={"reminder_id": rid})
            return False
        return True

    async def _report(self, record: ScheduledMessage, error: ReminderError) -> None:
        if self.notifier is None:
            return
        await self.notifier.notify(
            f"⚠️ Напоминание #{record.id} не доставлено: {error}\nТекст: {record.text}"
        )

    # ---------- операции для хендлеров ----------

    async def add(self, text: str, fire_at: datetime, recipient_id: Optional[int] = None) -> ScheduledMessage:
        self._ensure_ready()
        target = recipient_id if recipient_id is not None else self.default_recipient
        if target is None:
            raise ReminderError("Не указан получатель и не задан OWNER_ID")
        return await self.schedule(target, text, fire_at)

    async def remove(self, rid: int) -> bool:
        self._ensure_ready()
        return await self.cancel(rid)

    async def list(self) -> list[ScheduledMessage]:
        return await self.repo.list_pending()

    def _ensure_ready(self) -> None:
        if not self._recovered:
            raise SchedulerNotReady("Планировщик ещё поднимается, попробуй через минуту")

# reminder_bot/errors.py
from __future__ import annotations


class ReminderError(Exception):
    """Базовая ошибка подсистемы напоминаний. str(exc) можно показывать пользователю."""


class StorageError(ReminderError):
    """БД недоступна или отклонила запись."""


class NotFound(ReminderError):
    """Запись уже удалена (отменили) или больше не pending. Не ошибка, а no-op."""


class ValidationFailure(ReminderError):
    """Получатель недоступен в момент срабатывания."""


class DeliveryError(ReminderError):
    """Telegram не принял сообщение."""


class SchedulerNotReady(ReminderError):
    """add/remove пришли раньше, чем отработал recover()."""

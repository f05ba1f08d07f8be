from .base import Base
from .scheduled_message import ScheduledMessage, ReminderStatus

__all__ = ["Base", "ScheduledMessage", "ReminderStatus"]

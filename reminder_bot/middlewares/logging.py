# reminder_bot/middlewares/logging.py
import logging
import re
import time
from typing import Any, Dict, Awaitable, Callable

from aiogram import BaseMiddleware
from aiogram.types import Update

logger = logging.getLogger("reminder_bot.middleware.logging")

REMINDER_RE = re.compile(r"^/unremind(?:@\w+)?\s+#?(\d+)")

def _safe_get(obj: Any, path: str, default: Any = None):
    cur = obj
    for p in path.split("."):
        if cur is None:
            return default
        cur = getattr(cur, p, None)
    return cur if cur is not None else default

def _extract_reminder_from_event(event: Any) -> str | None:
    text = _safe_get(event, "text") or _safe_get(event, "message.text")
    if isinstance(text, str):
        m = REMINDER_RE.match(text.strip())
        if m:
            return m.group(1)
    return None

class LoggingMiddleware(BaseMiddleware):
    async def __call__(
        self,
        handler: Callable[[Any, Dict[str, Any]], Awaitable[Any]],
        event: Any,
        data: Dict[str, Any]
    ) -> Any:
        # Достаём Update, если он есть в данных
        update: Update | None = data.get("event_update") or data.get("update")
        update_id = getattr(update, "update_id", "-")

        extra = {
            "update_id": update_id,
            "user_id": (
                _safe_get(event, "from_user.id")
                or _safe_get(event, "message.from_user.id")
                or "-"
            ),
            "chat_id": (
                _safe_get(event, "chat.id")
                or _safe_get(event, "message.chat.id")
                or "-"
            ),
            "reminder_id": _extract_reminder_from_event(event) or "-",
            "event_type": type(event).__name__,
        }

        # входящий лог
        logger.info("incoming", extra=extra)

        started = time.perf_counter()
        try:
            result = await handler(event, data)
        except Exception:
            duration_ms = int((time.perf_counter() - started) * 1000)
            logger.exception("handler_error", extra={**extra, "duration_ms": duration_ms})
            raise
        duration_ms = int((time.perf_counter() - started) * 1000)
        logger.info("handled", extra={**extra, "duration_ms": duration_ms})
        return result

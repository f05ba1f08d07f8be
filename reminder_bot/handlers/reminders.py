# reminder_bot/handlers/reminders.py
from __future__ import annotations

import re
from datetime import datetime, timedelta, tzinfo

from aiogram import Router, html
from aiogram.filters import Command, CommandObject
from aiogram.types import Message

from reminder_bot.config import settings
from reminder_bot.errors import ReminderError
from reminder_bot.services.reminder_service import ReminderService
from reminder_bot.utils.dates import UTC, civil_to_utc, now_utc

router = Router(name="reminders")

USAGE = (
    "Формат:\n"
    "<code>/remind 2026-10-20 18:30 купить сыр</code>\n"
    "<code>/remind 18:30 купить сыр</code> (сегодня или завтра)\n"
    "<code>/remind +15m купить сыр</code> (m / h / d)"
)

RELATIVE_RE = re.compile(r"^\+(\d+)([mhd])$")
RELATIVE_UNITS = {"m": "minutes", "h": "hours", "d": "days"}
TOKEN_RE = re.compile(r"(\S+)\s*(.*)", re.S)

# запас до лимита Telegram в 4096 символов
MESSAGE_LIMIT = 4000


def _take(s: str) -> tuple[str, str]:
    """Первое слово и хвост строки как есть."""
    m = TOKEN_RE.match(s)
    if not m:
        return "", ""
    return m.group(1), m.group(2)


def split_when(args: str, tz: tzinfo, now: datetime) -> tuple[datetime, str]:
    """
    Разбираем «когда» + текст. Только фиксированные форматы, без NLP.
    Гражданское время трактуем в зоне деплоя и сразу переводим в UTC.
    Текст после времени сохраняем как набрали, вместе с переносами строк.
    """
    first, rest = _take(args.strip())
    if not first:
        raise ReminderError("Не указано время")

    m = RELATIVE_RE.match(first)
    if m:
        fire_at = now + timedelta(**{RELATIVE_UNITS[m.group(2)]: int(m.group(1))})
        return fire_at.astimezone(UTC), _text(rest)

    second, tail = _take(rest)
    if second:
        try:
            civil = datetime.strptime(f"{first} {second}", "%Y-%m-%d %H:%M")
            return civil_to_utc(civil, tz), _text(tail)
        except ValueError:
            pass

    try:
        hm = datetime.strptime(first, "%H:%M")
    except ValueError:
        raise ReminderError("Не понял время") from None

    local_now = now.astimezone(tz)
    civil = local_now.replace(tzinfo=None, hour=hm.hour, minute=hm.minute, second=0, microsecond=0)
    fire_at = civil_to_utc(civil, tz)
    if fire_at <= now:
        fire_at = civil_to_utc(civil + timedelta(days=1), tz)
    return fire_at, _text(rest)


def _text(rest: str) -> str:
    text = rest.strip()
    if not text:
        raise ReminderError("Не указан текст напоминания")
    return text


def chunk_lines(lines: list[str], limit: int = MESSAGE_LIMIT) -> list[str]:
    """Склеиваем строки в сообщения не длиннее limit, строку не режем."""
    chunks: list[str] = []
    buf = ""
    for line in lines:
        if buf and len(buf) + 1 + len(line) > limit:
            chunks.append(buf)
            buf = line
        else:
            buf = f"{buf}\n{line}" if buf else line
    if buf:
        chunks.append(buf)
    return chunks


def _local(dt: datetime) -> str:
    return f"{dt.astimezone(settings.reminders_zone):%Y-%m-%d %H:%M %Z}"


def _allowed(m: Message) -> bool:
    return m.from_user is not None and settings.is_admin(m.from_user.id)


@router.message(Command("remind"))
async def cmd_remind(m: Message, command: CommandObject, reminders: ReminderService):
    """
    /remind <когда> <текст>
    Напоминание прилетит в этот же чат.
    """
    if not _allowed(m):
        return await m.answer("Нет доступа.")
    if not command.args:
        return await m.reply(USAGE)

    try:
        fire_at, text = split_when(command.args, settings.reminders_zone, now_utc())
        rec = await reminders.add(text, fire_at, recipient_id=m.chat.id)
    except ReminderError as e:
        return await m.reply(f"Не получилось: {html.quote(str(e))}\n\n{USAGE}")

    return await m.reply(f"Ок ✅ Напомню <b>#{rec.id}</b> в <b>{_local(rec.fire_at_utc)}</b>")


@router.message(Command("reminders"))
async def cmd_reminders(m: Message, reminders: ReminderService):
    if not _allowed(m):
        return await m.answer("Нет доступа.")

    pending = await reminders.list()
    if not pending:
        return await m.reply("Запланированных напоминаний нет.")

    lines = ["🗓 <b>Запланировано:</b>"]
    for r in pending:
        short = r.text if len(r.text) <= 60 else r.text[:57] + "..."
        lines.append(
            f"<b>#{r.id}</b> · {_local(r.fire_at_utc)} · чат {r.recipient_id}\n{html.quote(short)}"
        )
    first, *more = chunk_lines(lines)
    await m.reply(first)
    for chunk in more:
        await m.answer(chunk)


@router.message(Command("unremind"))
async def cmd_unremind(m: Message, command: CommandObject, reminders: ReminderService):
    """/unremind <id>"""
    if not _allowed(m):
        return await m.answer("Нет доступа.")

    raw = (command.args or "").strip().lstrip("#")
    if not raw.isdigit():
        return await m.reply("Укажи id: /unremind <id>")

    try:
        removed = await reminders.remove(int(raw))
    except ReminderError as e:
        return await m.reply(f"Не получилось: {html.quote(str(e))}")

    if removed:
        return await m.reply(f"Напоминание #{raw} отменено.")
    return await m.reply(f"Напоминание #{raw} не найдено.")

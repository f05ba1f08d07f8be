from aiogram import Router
from aiogram.filters import Command
from aiogram.types import Message

router = Router(name="id")

# Пригодится, чтобы узнать chat id для OWNER_ID и получателей напоминаний
@router.message(Command("id"))
async def show_id(msg: Message):
    await msg.answer(
        f"Ваш Telegram ID: <code>{msg.from_user.id}</code>\n"
        f"ID этого чата: <code>{msg.chat.id}</code>"
    )

"""Tests for recipient validation and message delivery."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock

import pytest
from aiogram.exceptions import ClientDecodeError, TelegramBadRequest, TelegramNetworkError

from reminder_bot.errors import DeliveryError
from reminder_bot.services.delivery import DeliveryDispatcher, DeliveryReceipt, OperatorNotifier
from reminder_bot.services.recipient_validator import RecipientValidator


def test_render_adds_clock_prefix():
    d = DeliveryDispatcher(Mock())
    assert d.render("Buy cheese") == "⏰ Напоминание: Buy cheese"

    custom = DeliveryDispatcher(Mock(), prefix="🔔 ")
    assert custom.render("Buy cheese") == "🔔 Buy cheese"


@pytest.mark.asyncio
async def test_deliver_sends_plain_text_and_returns_receipt(bot, now):
    receipt = await DeliveryDispatcher(bot).deliver(42, "<b>not html</b>")

    assert receipt == DeliveryReceipt(recipient_id=42, message_id=100, sent_at=now)
    bot.send_message.assert_awaited_once_with(
        chat_id=42, text="⏰ Напоминание: <b>not html</b>", parse_mode=None
    )


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "exc",
    [
        TelegramBadRequest(method=Mock(), message="Bad Request: chat not found"),
        TelegramNetworkError(method=Mock(), message="timeout"),
        ClientDecodeError("Failed to decode object", ValueError("x"), "<html>"),
    ],
)
async def test_transport_errors_become_delivery_error(exc):
    bot = Mock()
    bot.send_message = AsyncMock(side_effect=exc)

    with pytest.raises(DeliveryError):
        await DeliveryDispatcher(bot).deliver(42, "x")
    bot.send_message.assert_awaited_once()


@pytest.mark.asyncio
async def test_validator_reachable(bot):
    assert await RecipientValidator(bot).is_reachable(42) is True
    bot.get_chat.assert_awaited_once_with(42)


@pytest.mark.asyncio
async def test_validator_fails_closed_on_any_error(bot):
    assert await RecipientValidator(bot).is_reachable(-1) is False

    weird = Mock()
    weird.get_chat = AsyncMock(side_effect=RuntimeError("boom"))
    assert await RecipientValidator(weird).is_reachable(42) is False


@pytest.mark.asyncio
async def test_operator_notifier_is_best_effort():
    bot = Mock()
    bot.send_message = AsyncMock(side_effect=TelegramNetworkError(method=Mock(), message="down"))

    await OperatorNotifier(bot, 777).notify("alert")
    bot.send_message.assert_awaited_once()

    silent = Mock()
    silent.send_message = AsyncMock(return_value=SimpleNamespace(message_id=1))
    await OperatorNotifier(silent, None).notify("alert")
    silent.send_message.assert_not_awaited()

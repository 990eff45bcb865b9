# tests/test_telegram.py
"""
Telegram Adapter Tests - Unit Tests for Handlers, Editor and Jobs

This module contains unit tests for the Telegram-facing adapters:
conversion of channel posts into inbound messages, the HTML message editor
with its retry policy, and the scheduled rate refresh job.

Files that USE this module:
- pytest (test runner executes these tests)

Files that this module USES:
- pricetag.adapters.telegram.handlers (to_inbound_message, channel_post, build_handlers)
- pricetag.adapters.telegram.editor (TelegramEditor)
- pricetag.adapters.telegram.jobs (refresh_rates_job)
- telegram (MessageEntity, error classes)
- unittest.mock (Mock, AsyncMock, patch)
- pytest (testing framework)
"""
import asyncio

import pytest  # Testing framework for writing and running tests

from unittest.mock import AsyncMock, Mock, patch  # Mock Telegram objects and API calls

from telegram import MessageEntity
from telegram.constants import ParseMode
from telegram.error import BadRequest, Forbidden, RetryAfter, TimedOut
from telegram.ext import MessageHandler

from pricetag.adapters.telegram.editor import TelegramEditor
from pricetag.adapters.telegram.handlers import (
    build_handlers,
    channel_post,
    spans_from_entities,
    to_inbound_message,
)
from pricetag.adapters.telegram.jobs import refresh_rates_job
from pricetag.domain.errors import EditError, RateFetchError
from pricetag.domain.models import EditRequest, FormatSpan, InboundMessage, SpanStyle


def _message(text=None, entities=(), caption=None, caption_entities=(), chat_id=-100, message_id=1):
    message = Mock()
    message.chat.id = chat_id
    message.message_id = message_id
    message.text = text
    message.entities = tuple(entities)
    message.caption = caption
    message.caption_entities = tuple(caption_entities)
    return message


class TestHandlers:
    def test_entities_mapped_to_spans(self):
        entities = [
            MessageEntity(MessageEntity.BOLD, 0, 5),
            MessageEntity(MessageEntity.HASHTAG, 6, 4),
            MessageEntity(MessageEntity.ITALIC, 11, 3),
            MessageEntity(MessageEntity.TEXT_LINK, 15, 4, url="https://shop.example"),
        ]

        assert spans_from_entities(entities) == (
            FormatSpan(0, 5, SpanStyle.BOLD),
            FormatSpan(11, 3, SpanStyle.ITALIC),
            FormatSpan(15, 4, SpanStyle.LINK, url="https://shop.example"),
        )

    def test_no_entities(self):
        assert spans_from_entities(None) == ()

    def test_to_inbound_message(self):
        message = _message(
            text="Hello $price:1", entities=[MessageEntity(MessageEntity.BOLD, 0, 5)],
            chat_id=-1001, message_id=42,
        )

        assert to_inbound_message(message) == InboundMessage(
            channel_id=-1001,
            message_id=42,
            body_text="Hello $price:1",
            body_spans=(FormatSpan(0, 5, SpanStyle.BOLD),),
            caption_text="",
            caption_spans=(),
        )

    def test_to_inbound_message_caption(self):
        message = _message(caption="$price:2", caption_entities=[MessageEntity(MessageEntity.ITALIC, 0, 8)])

        inbound = to_inbound_message(message)

        assert inbound.body_text == ""
        assert inbound.caption_text == "$price:2"
        assert inbound.caption_spans == (FormatSpan(0, 8, SpanStyle.ITALIC),)

    @pytest.mark.parametrize("field", ["channel_post", "edited_channel_post"])
    def test_channel_post_submitted(self, field):
        update = Mock(channel_post=None, edited_channel_post=None)
        setattr(update, field, _message(text="$price:1"))
        price_bot = Mock()

        asyncio.run(channel_post(update, Mock(), price_bot=price_bot))

        price_bot.submit.assert_called_once()
        assert price_bot.submit.call_args.args[0].body_text == "$price:1"

    def test_update_without_channel_post_ignored(self):
        update = Mock(channel_post=None, edited_channel_post=None)
        price_bot = Mock()

        asyncio.run(channel_post(update, Mock(), price_bot=price_bot))

        price_bot.submit.assert_not_called()

    def test_build_handlers(self):
        handlers = build_handlers(Mock())
        assert len(handlers) == 1
        assert isinstance(handlers[0], MessageHandler)
        assert handlers[0].block is False


@pytest.fixture
def telegram_bot():
    bot = Mock()
    bot.edit_message_text = AsyncMock()
    bot.edit_message_caption = AsyncMock()
    return bot


class TestTelegramEditor:
    def test_edit_text(self, telegram_bot):
        editor = TelegramEditor(telegram_bot, timeout=7)

        asyncio.run(editor.edit(EditRequest(-100, 1, False, "<b>1.00₴</b>")))

        telegram_bot.edit_message_text.assert_awaited_once_with(
            chat_id=-100, message_id=1, text="<b>1.00₴</b>", parse_mode=ParseMode.HTML,
            read_timeout=7, write_timeout=7, connect_timeout=7,
        )
        telegram_bot.edit_message_caption.assert_not_awaited()

    def test_edit_caption(self, telegram_bot):
        editor = TelegramEditor(telegram_bot)

        asyncio.run(editor.edit(EditRequest(-100, 1, True, "1.00₴")))

        telegram_bot.edit_message_caption.assert_awaited_once()
        assert telegram_bot.edit_message_caption.call_args.kwargs["caption"] == "1.00₴"

    def test_not_modified_is_success(self, telegram_bot):
        telegram_bot.edit_message_text.side_effect = BadRequest(
            "Message is not modified: specified new message content is the same"
        )
        editor = TelegramEditor(telegram_bot)

        asyncio.run(editor.edit(EditRequest(-100, 1, False, "x")))

        telegram_bot.edit_message_text.assert_awaited_once()

    def test_bad_request_raises(self, telegram_bot):
        telegram_bot.edit_message_text.side_effect = BadRequest("Message to edit not found")
        editor = TelegramEditor(telegram_bot)

        with pytest.raises(EditError, match="not found"):
            asyncio.run(editor.edit(EditRequest(-100, 1, False, "x")))
        telegram_bot.edit_message_text.assert_awaited_once()

    def test_forbidden_raises_without_retry(self, telegram_bot):
        telegram_bot.edit_message_text.side_effect = Forbidden("bot is not a member of the channel")
        editor = TelegramEditor(telegram_bot)

        with pytest.raises(EditError):
            asyncio.run(editor.edit(EditRequest(-100, 1, False, "x")))
        telegram_bot.edit_message_text.assert_awaited_once()

    def test_timeout_retried(self, telegram_bot):
        telegram_bot.edit_message_text.side_effect = [TimedOut(), None]
        editor = TelegramEditor(telegram_bot, max_attempts=3)

        asyncio.run(editor.edit(EditRequest(-100, 1, False, "x")))

        assert telegram_bot.edit_message_text.await_count == 2

    def test_retry_after_waits(self, telegram_bot):
        telegram_bot.edit_message_text.side_effect = [RetryAfter(3), None]
        editor = TelegramEditor(telegram_bot)

        with patch("pricetag.adapters.telegram.editor.asyncio.sleep", new=AsyncMock()) as sleep:
            asyncio.run(editor.edit(EditRequest(-100, 1, False, "x")))

        sleep.assert_awaited_once_with(4.0)
        assert telegram_bot.edit_message_text.await_count == 2

    def test_attempts_exhausted(self, telegram_bot):
        telegram_bot.edit_message_text.side_effect = TimedOut()
        editor = TelegramEditor(telegram_bot, max_attempts=3)

        with pytest.raises(EditError, match="3 attempt"):
            asyncio.run(editor.edit(EditRequest(-100, 1, False, "x")))
        assert telegram_bot.edit_message_text.await_count == 3


class TestRefreshRatesJob:
    def _context(self, cache):
        context = Mock()
        context.job.data = cache
        return context

    def test_refresh_called(self):
        cache = Mock()
        cache.refresh.return_value = True

        asyncio.run(refresh_rates_job(self._context(cache)))

        cache.refresh.assert_called_once_with()

    def test_fetch_error_logged_not_raised(self, caplog):
        cache = Mock()
        cache.refresh.side_effect = RateFetchError("timeout")

        asyncio.run(refresh_rates_job(self._context(cache)))

        assert "keeping previous rates" in caplog.text

    def test_unexpected_error_logged_not_raised(self):
        cache = Mock()
        cache.refresh.side_effect = RuntimeError("bug")

        asyncio.run(refresh_rates_job(self._context(cache)))

        cache.refresh.assert_called_once()

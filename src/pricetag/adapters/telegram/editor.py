# src/pricetag/adapters/telegram/editor.py
"""
Telegram Editor - Writes Rendered Prices Back Into Posts

This module implements the MessageEditor used by the PriceBot. Bodies are
edited with editMessageText, media captions with editMessageCaption, both in
HTML parse mode. Every call has explicit timeouts and a bounded number of
attempts so a slow Telegram API never blocks message processing for long.

Files that USE this module:
- pricetag.app (builds the editor around the Application's bot)
- tests.test_telegram (unit tests)

Files that this module USES:
- pricetag.domain (EditRequest, EditError)
"""
from __future__ import annotations

import asyncio
import logging
from datetime import timedelta

from telegram import Bot
from telegram.constants import ParseMode
from telegram.error import BadRequest, NetworkError, RetryAfter, TelegramError

from pricetag.domain.errors import EditError
from pricetag.domain.models import EditRequest

logger = logging.getLogger(__name__)

NOT_MODIFIED = "message is not modified"


def _retry_delay(error: RetryAfter) -> float:
    delay = error.retry_after
    if isinstance(delay, timedelta):
        return delay.total_seconds()
    return float(delay)


class TelegramEditor:
    """MessageEditor backed by the Telegram Bot API."""

    def __init__(self, bot: Bot, timeout: float = 10.0, max_attempts: int = 3):
        """
        Args:
            bot: Telegram bot used to send edits
            timeout: Read/write/connect timeout per attempt, in seconds
            max_attempts: Attempts per edit before giving up
        """
        self.bot = bot
        self.timeout = timeout
        self.max_attempts = max_attempts

    async def edit(self, request: EditRequest) -> None:
        """
        Replace the text or caption of a message with rendered text.

        An edit that would not change the message counts as a success.

        Raises:
            EditError: If Telegram rejects the edit or all attempts fail
        """
        last_error: Exception | None = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                await self._send(request)
                logger.debug("Edited message %s/%s", request.channel_id, request.message_id)
                return
            except RetryAfter as e:
                delay = _retry_delay(e)
                logger.warning("Telegram rate limit (429): retry after %s seconds", delay)
                last_error = e
                if attempt < self.max_attempts:
                    await asyncio.sleep(delay + 1)
            except BadRequest as e:
                if NOT_MODIFIED in str(e).lower():
                    logger.debug("Message %s/%s already up to date", request.channel_id, request.message_id)
                    return
                raise EditError(
                    f"Telegram rejected edit of {request.channel_id}/{request.message_id}: {e}"
                ) from e
            except NetworkError as e:
                # TimedOut is a NetworkError
                logger.warning("Edit of %s/%s failed (attempt %d/%d): %s",
                               request.channel_id, request.message_id, attempt, self.max_attempts, e)
                last_error = e
            except TelegramError as e:
                raise EditError(
                    f"Telegram error on edit of {request.channel_id}/{request.message_id}: {e}"
                ) from e

        raise EditError(
            f"Edit of {request.channel_id}/{request.message_id} failed after "
            f"{self.max_attempts} attempt(s): {last_error}"
        )

    async def _send(self, request: EditRequest) -> None:
        timeouts = dict(
            read_timeout=self.timeout,
            write_timeout=self.timeout,
            connect_timeout=self.timeout,
        )
        if request.is_caption:
            await self.bot.edit_message_caption(
                chat_id=request.channel_id,
                message_id=request.message_id,
                caption=request.rendered_text,
                parse_mode=ParseMode.HTML,
                **timeouts,
            )
        else:
            await self.bot.edit_message_text(
                chat_id=request.channel_id,
                message_id=request.message_id,
                text=request.rendered_text,
                parse_mode=ParseMode.HTML,
                **timeouts,
            )

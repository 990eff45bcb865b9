# src/pricetag/adapters/telegram/handlers.py
"""
Telegram Handlers - Channel Post Processing

This module turns Telegram channel posts (new and edited) into InboundMessage
events and hands them to the PriceBot. Formatting entities are resolved here,
once, into the closed set of spans the renderer understands; other entity
types (mentions, hashtags, plain URLs, ...) carry no markup and are dropped.

Files that USE this module:
- pricetag.app (build_handlers function creates handler instances)

Files that this module USES:
- pricetag.application.price_bot (PriceBot.submit)
- pricetag.domain.models (InboundMessage, FormatSpan, SpanStyle)
"""
from __future__ import annotations

import logging
from functools import partial
from typing import Optional, Sequence

from telegram import Message, MessageEntity, Update
from telegram.ext import BaseHandler, ContextTypes, MessageHandler, filters

from pricetag.application.price_bot import PriceBot
from pricetag.domain.models import FormatSpan, InboundMessage, SpanStyle

logger = logging.getLogger(__name__)

_ENTITY_STYLES = {
    MessageEntity.BOLD: SpanStyle.BOLD,
    MessageEntity.ITALIC: SpanStyle.ITALIC,
    MessageEntity.TEXT_LINK: SpanStyle.LINK,
}


def span_from_entity(entity: MessageEntity) -> Optional[FormatSpan]:
    """Map a Telegram entity to a FormatSpan, or None if it has no markup."""
    style = _ENTITY_STYLES.get(entity.type)
    if style is None:
        return None
    url = entity.url if style is SpanStyle.LINK else None
    return FormatSpan(offset=entity.offset, length=entity.length, style=style, url=url)


def spans_from_entities(entities: Optional[Sequence[MessageEntity]]) -> tuple[FormatSpan, ...]:
    """
    Convert Telegram entities into ordered formatting spans.

    Telegram sends entities sorted by offset; the order is kept so that the
    renderer's "earlier span wins" rule sees them as the author applied them.
    """
    spans = []
    for entity in entities or ():
        span = span_from_entity(entity)
        if span is not None:
            spans.append(span)
    return tuple(spans)


def to_inbound_message(message: Message) -> InboundMessage:
    """Build an InboundMessage from a Telegram channel post."""
    return InboundMessage(
        channel_id=message.chat.id,
        message_id=message.message_id,
        body_text=message.text or "",
        body_spans=spans_from_entities(message.entities),
        caption_text=message.caption or "",
        caption_spans=spans_from_entities(message.caption_entities),
    )


async def channel_post(update: Update, context: ContextTypes.DEFAULT_TYPE, price_bot: PriceBot) -> None:
    """
    Handle a new or edited channel post.

    The post is queued for the PriceBot; processing happens in its own task.
    """
    message = update.channel_post or update.edited_channel_post
    if message is None:
        logger.debug("Update %s has no channel post, skip it", update.update_id)
        return

    logger.debug("Got channel post %s/%s", message.chat.id, message.message_id)
    price_bot.submit(to_inbound_message(message))


def build_handlers(price_bot: PriceBot) -> list[BaseHandler]:
    """
    Build the handlers the Application needs.

    Args:
        price_bot: Bot that receives every channel post

    Returns:
        List of handlers to register with the Application
    """
    return [
        MessageHandler(
            filters.UpdateType.CHANNEL_POSTS,
            partial(channel_post, price_bot=price_bot),
            block=False,
        ),
    ]

# src/pricetag/adapters/telegram/bot.py
"""
Telegram Bot - Application Builder

This module builds the python-telegram-bot Application with the lifecycle
hooks the PriceBot needs.
"""

from __future__ import annotations

from typing import Awaitable, Callable, Optional

from telegram.ext import Application

LifecycleHook = Callable[[Application], Awaitable[None]]


def build_application(
    bot_token: str,
    post_init: Optional[LifecycleHook] = None,
    post_stop: Optional[LifecycleHook] = None,
) -> Application:
    """
    Build Telegram bot application.

    Args:
        bot_token: Telegram bot token
        post_init: Coroutine run once the Application is initialized
        post_stop: Coroutine run after the Application has stopped polling

    Returns:
        Configured Application instance
    """
    builder = Application.builder().token(bot_token)
    if post_init is not None:
        builder = builder.post_init(post_init)
    if post_stop is not None:
        builder = builder.post_stop(post_stop)
    return builder.build()

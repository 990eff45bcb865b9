# src/pricetag/adapters/telegram/__init__.py
"""
Telegram Adapters - Bot Interface

This package contains Telegram bot adapters:
- Application builder
- Channel post handlers
- Message editor
- Scheduled jobs
"""

from pricetag.adapters.telegram.bot import build_application
from pricetag.adapters.telegram.editor import TelegramEditor
from pricetag.adapters.telegram.handlers import build_handlers, to_inbound_message
from pricetag.adapters.telegram.jobs import refresh_rates_job

__all__ = [
    "build_application",
    "build_handlers",
    "to_inbound_message",
    "TelegramEditor",
    "refresh_rates_job",
]

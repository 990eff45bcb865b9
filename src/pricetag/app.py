# src/pricetag/app.py
"""
Application Entry Point - Bot Initialization and Startup

This module serves as the composition root for the PriceTag Telegram bot.
It wires all dependencies and starts the bot application.

Files that USE this module:
- python -m pricetag / the ``pricetag`` console script

Files that this module USES:
- pricetag.shared.logging_conf (setup_logging for logging configuration)
- pricetag.config (settings for configuration management)
- pricetag.adapters.* (rate provider, template store, renderer, Telegram adapters)
- pricetag.application.* (RateCache, PriceBot)
"""

from __future__ import annotations  # Enable postponed evaluation of annotations for forward references

import atexit  # Register cleanup functions to run when program exits
import logging  # Standard library for logging messages and errors
import os  # Operating system interface for process management
import sys  # System-specific parameters and functions for exit codes
from datetime import timedelta  # Job scheduling intervals
from pathlib import Path  # Object-oriented filesystem paths

from telegram import Update  # Update types for allowed_updates
from telegram.ext import Application  # Main Telegram bot application class
from telegram.error import Conflict, NetworkError, TimedOut  # Telegram API error exceptions

from pricetag.shared.logging_conf import setup_logging  # Configure logging with file rotation
from pricetag.config import Settings, get_settings  # Pydantic settings
from pricetag.adapters.formatting.renderer import Renderer  # Price token renderer
from pricetag.adapters.persistence.template_store import TemplateStore  # Durable template registry
from pricetag.adapters.providers.cbr import CbrDailyProvider  # Central bank rate feed
from pricetag.adapters.telegram.bot import build_application  # Application factory
from pricetag.adapters.telegram.editor import TelegramEditor  # Outbound message edits
from pricetag.adapters.telegram.handlers import build_handlers  # Channel post handlers
from pricetag.adapters.telegram.jobs import refresh_rates_job  # Scheduled rate refresh
from pricetag.application.price_bot import PriceBot  # Orchestrator
from pricetag.application.rate_cache import RateCache  # Current rates + change notifications
from pricetag.domain.errors import LifecycleError

logger = logging.getLogger(__name__)


# -------- single instance lock --------

def _get_pid_file(settings: Settings) -> Path:
    """PID file lives next to the template document unless PRICETAG_PID_FILE is set."""
    pid_file = os.environ.get("PRICETAG_PID_FILE")
    if pid_file:
        return Path(pid_file)
    return settings.templates_file.parent / "pricetag.pid"


def _check_existing_instance(pid_file: Path) -> None:
    """
    Refuse to start if another instance is polling with the same template file.

    Raises:
        RuntimeError: If the PID file points at a live process
    """
    if not pid_file.exists():
        return
    try:
        old_pid = int(pid_file.read_text().strip())
    except (ValueError, OSError):
        pid_file.unlink(missing_ok=True)
        return

    try:
        os.kill(old_pid, 0)  # Signal 0 doesn't kill, just checks if process exists
    except ProcessLookupError:
        pid_file.unlink(missing_ok=True)
        return
    except PermissionError:
        pass
    raise RuntimeError(
        f"Another bot instance is already running (PID: {old_pid}).\n"
        f"Please stop it first with: kill {old_pid}"
    )


def _create_pid_file(pid_file: Path) -> None:
    pid_file.parent.mkdir(parents=True, exist_ok=True)
    pid_file.write_text(str(os.getpid()))


def _remove_pid_file(pid_file: Path) -> None:
    try:
        pid_file.unlink(missing_ok=True)
    except OSError as e:
        logger.warning("Failed to remove PID file %s: %s", pid_file, e)


# -------- wiring --------

def build_app(settings: Settings) -> Application:
    """
    Build every component and the Telegram application around them.

    Fails fast if the template document is malformed or the first rate
    fetch fails.

    Args:
        settings: Application settings

    Returns:
        Application ready for run_polling
    """
    store = TemplateStore(settings.templates_file)

    provider = CbrDailyProvider(
        url=settings.rates_url,
        timeout=settings.http_timeout_seconds,
        retries=settings.http_retries,
        reference_code=settings.reference_currency,
    )
    rate_cache = RateCache(provider)

    renderer = Renderer(
        rate_cache,
        marker=settings.price_marker,
        source_code=settings.source_currency,
        target_code=settings.target_currency,
        source_symbol=settings.source_symbol,
        target_symbol=settings.target_symbol,
    )

    price_bot: PriceBot

    async def on_init(application: Application) -> None:
        me = await application.bot.get_me()
        logger.info("Authorized on account %s", me.username)
        await price_bot.start()

    async def on_stop(application: Application) -> None:
        logger.info("Stopping bot")
        try:
            await price_bot.stop(settings.stop_timeout_seconds)
        except LifecycleError as e:
            logger.error("Bot was not stopped cleanly: %s", e)
        finally:
            rate_cache.close()

    app = build_application(settings.bot_token, post_init=on_init, post_stop=on_stop)

    editor = TelegramEditor(
        app.bot,
        timeout=settings.edit_timeout_seconds,
        max_attempts=settings.edit_max_attempts,
    )
    price_bot = PriceBot(store, renderer, rate_cache, editor)

    for h in build_handlers(price_bot):
        app.add_handler(h)

    # The first fetch already happened in RateCache()
    app.job_queue.run_repeating(
        callback=refresh_rates_job,
        interval=timedelta(minutes=settings.rate_refresh_minutes),
        first=timedelta(minutes=settings.rate_refresh_minutes),
        data=rate_cache,
        name="rate_refresh",
    )
    return app


def main() -> None:
    """
    Initialize and start the Telegram bot application.

    This function:
    1. Sets up logging and validates configuration
    2. Takes the single-instance lock
    3. Loads templates and fetches the first rates (fail fast)
    4. Registers channel post handlers and the rate refresh job
    5. Starts the bot polling loop until SIGINT/SIGTERM
    """
    settings = get_settings()

    setup_logging(
        level=settings.log_level,
        log_file=settings.log_file,
        log_dir=settings.log_dir,
        log_stdout=settings.log_stdout,
        max_bytes=settings.log_max_bytes,
        backup_count=settings.log_backup_count,
    )
    logger.info("Working directory: %s", os.getcwd())
    logger.info("Template document: %s", settings.templates_file)

    pid_file = _get_pid_file(settings)
    try:
        _check_existing_instance(pid_file)
        _create_pid_file(pid_file)
        atexit.register(_remove_pid_file, pid_file)
        logger.info("Bot instance lock acquired (PID: %d)", os.getpid())
    except RuntimeError as e:
        logger.error(str(e))
        sys.exit(1)

    app = build_app(settings)

    logger.info("Starting bot polling… rate refresh every %d minutes", settings.rate_refresh_minutes)
    try:
        app.run_polling(
            allowed_updates=[Update.CHANNEL_POST, Update.EDITED_CHANNEL_POST],
            drop_pending_updates=False,
        )
    except Conflict:
        logger.error(
            "Telegram Conflict error: another bot instance is already polling for updates.\n"
            "Telegram only allows ONE bot instance to poll at a time.",
            exc_info=True,
        )
        raise
    except (TimedOut, NetworkError) as e:
        logger.error(
            "Network error during bot operation: %s (type: %s)",
            e,
            type(e).__name__,
            exc_info=True,
        )
        raise


if __name__ == "__main__":
    main()

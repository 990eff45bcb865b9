# src/pricetag/adapters/telegram/jobs.py
"""
Telegram Jobs - Scheduled Tasks

This module holds the job-queue callbacks. The only scheduled task is the
periodic rate refresh: it runs the blocking HTTP fetch in a worker thread so
the event loop keeps serving channel posts, and it never lets a failed fetch
break the schedule.

Files that USE this module:
- pricetag.app (refresh_rates_job is registered as a repeating job)

Files that this module USES:
- pricetag.application.rate_cache (RateCache.refresh)
- pricetag.domain.errors (RateFetchError)
"""
from __future__ import annotations

import asyncio
import logging

from telegram.ext import ContextTypes

from pricetag.application.rate_cache import RateCache
from pricetag.domain.errors import RateFetchError

logger = logging.getLogger(__name__)

# Re-entrancy protection: a slow fetch must not overlap with the next tick
_refresh_lock = asyncio.Lock()


async def refresh_rates_job(context: ContextTypes.DEFAULT_TYPE) -> None:
    """
    Scheduled job that refreshes the rate cache.

    The cache is passed as the job's data. Failures are logged and the next
    run happens on the normal schedule; the previous rates stay in use.

    Args:
        context: Telegram job context, ``context.job.data`` is the RateCache
    """
    cache: RateCache = context.job.data

    if _refresh_lock.locked():
        logger.warning("refresh_rates_job: Skipping concurrent execution (previous refresh still running)")
        return

    async with _refresh_lock:
        try:
            changed = await asyncio.to_thread(cache.refresh)
        except RateFetchError as e:
            logger.error("Error on currency update, keeping previous rates: %s", e)
            return
        except Exception:
            logger.exception("Unexpected error on currency update")
            return

    if changed:
        logger.info("Currency updated")
    else:
        logger.info("Currency checked, rates unchanged")

# src/pricetag/application/price_bot.py
"""
Price Bot - Tracks Price Templates and Keeps Posts Up To Date

This module is the heart of the bot. It consumes inbound channel posts,
decides whether each one is a price template, keeps the template store in
sync, and asks the transport to edit the post with rendered prices. Whenever
the rate cache reports new rates it re-renders every tracked post.

Files that USE this module:
- pricetag.app (starts and stops the bot around Telegram polling)
- pricetag.adapters.telegram.handlers (submits inbound channel posts)
- tests.test_price_bot (unit tests)

Files that this module USES:
- pricetag.adapters.formatting.renderer (Renderer, format_spans)
- pricetag.adapters.persistence.template_store (TemplateStore)
- pricetag.application.rate_cache (RateCache subscription)
- pricetag.domain (models and lifecycle errors)
"""
from __future__ import annotations

import asyncio
import logging
from typing import Optional, Protocol, Set

from pricetag.adapters.formatting.renderer import Renderer, format_spans
from pricetag.adapters.persistence.template_store import TemplateStore
from pricetag.application.rate_cache import RateCache
from pricetag.domain.errors import (
    AlreadyStartedError,
    NotRunningError,
    PersistenceError,
    ShutdownTimeoutError,
)
from pricetag.domain.models import EditRequest, InboundMessage, TemplateText

logger = logging.getLogger(__name__)


class MessageEditor(Protocol):
    """Transport that writes rendered text back into an existing message."""
    async def edit(self, request: EditRequest) -> None:
        ...


class PriceBot:
    """
    Orchestrates the template store, renderer and rate cache.

    Every inbound message is handled in its own task; there is no ordering
    between them. The store and the cache carry their own locks.
    """

    def __init__(
        self,
        store: TemplateStore,
        renderer: Renderer,
        rate_cache: RateCache,
        editor: MessageEditor,
    ):
        self.store = store
        self.renderer = renderer
        self.rate_cache = rate_cache
        self.editor = editor

        self._queue: asyncio.Queue[InboundMessage] = asyncio.Queue()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._loop_task: Optional[asyncio.Task] = None
        self._tasks: Set[asyncio.Task] = set()
        self._started = False
        self._stopped = False
        self._subscribed = False

    @property
    def running(self) -> bool:
        return self._started and not self._stopped

    # -------- lifecycle --------

    async def start(self) -> None:
        """
        Start consuming inbound messages and re-render all tracked posts.

        Raises:
            AlreadyStartedError: If the bot was started before
        """
        if self._started:
            raise AlreadyStartedError("PriceBot already started")
        self._started = True
        self._loop = asyncio.get_running_loop()
        self._loop_task = asyncio.create_task(self._consume(), name="pricebot-loop")

        if not self._subscribed:
            self.rate_cache.register_subscriber(self._on_rates_changed)
            self._subscribed = True
        self._spawn(self.update_all_messages())
        logger.info("PriceBot started, tracking %d template(s)", len(self.store))

    async def stop(self, timeout: float = 5.0) -> None:
        """
        Stop the message loop and wait for in-flight work.

        Args:
            timeout: Grace period in seconds for the whole shutdown

        Raises:
            NotRunningError: If the bot is not running
            ShutdownTimeoutError: If shutdown does not finish within the grace period
        """
        if not self.running:
            raise NotRunningError("PriceBot is not running")
        self._stopped = True

        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        self._loop_task.cancel()
        done, _ = await asyncio.wait({self._loop_task}, timeout=timeout)
        if not done:
            raise ShutdownTimeoutError(f"Message loop did not stop within {timeout}s")

        pending = set(self._tasks)
        if pending:
            remaining = max(deadline - loop.time(), 0)
            _, still_running = await asyncio.wait(pending, timeout=remaining)
            if still_running:
                for task in still_running:
                    task.cancel()
                raise ShutdownTimeoutError(
                    f"{len(still_running)} message task(s) still running after {timeout}s"
                )
        logger.info("PriceBot stopped")

    def submit(self, message: InboundMessage) -> None:
        """Queue an inbound message for processing."""
        if not self.running:
            logger.warning("PriceBot not running, dropping message %s/%s",
                           message.channel_id, message.message_id)
            return
        self._queue.put_nowait(message)

    async def _consume(self) -> None:
        logger.info("Starting message loop")
        try:
            while True:
                message = await self._queue.get()
                self._spawn(self.process_message(message))
        except asyncio.CancelledError:
            logger.info("Message loop cancelled")
            raise

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Background task failed: %s", exc, exc_info=exc)

    # -------- message handling --------

    async def process_message(self, message: InboundMessage) -> None:
        """
        Track, untrack or ignore a single channel post.

        The body is used unless it is empty, then the caption. Posts without
        price tokens are removed from the store (they may have been edited).
        """
        text, spans, is_caption = message.body_text, message.body_spans, False
        if not text:
            text, spans, is_caption = message.caption_text, message.caption_spans, True

        if not self.renderer.is_template(text):
            logger.debug("Message %s/%s is not a template", message.channel_id, message.message_id)
            try:
                await asyncio.to_thread(self.store.delete, message.channel_id, message.message_id)
            except PersistenceError as e:
                logger.error("Error on removing template %s/%s: %s",
                             message.channel_id, message.message_id, e)
            return

        template = TemplateText(text=format_spans(text, spans), is_caption=is_caption)
        try:
            await asyncio.to_thread(self.store.add, message.channel_id, message.message_id, template)
        except PersistenceError as e:
            logger.error("Error on adding template %s/%s: %s",
                         message.channel_id, message.message_id, e)
            return
        logger.info("Template added for %s/%s", message.channel_id, message.message_id)

        await self.update_message(message.channel_id, message.message_id, template)

    async def update_message(self, channel_id: int, message_id: int, template: TemplateText) -> bool:
        """
        Render a template and send the edit.

        Returns:
            True if the edit was sent, False if it failed (the failure is logged)
        """
        request = EditRequest(
            channel_id=channel_id,
            message_id=message_id,
            is_caption=template.is_caption,
            rendered_text=self.renderer.render(template.text),
        )
        try:
            await self.editor.edit(request)
        except Exception as e:
            logger.error("Failed to update message %s/%s: %s", channel_id, message_id, e)
            return False
        return True

    async def update_all_messages(self) -> int:
        """
        Re-render every tracked template.

        Returns:
            Number of messages updated successfully
        """
        entries = await asyncio.to_thread(self.store.list_templates)
        updated = 0
        for entry in entries:
            if await self.update_message(entry.channel_id, entry.message_id, entry.template):
                updated += 1
        logger.info("Updated %d of %d tracked message(s)", updated, len(entries))
        return updated

    def _on_rates_changed(self) -> None:
        # Runs on a rate cache worker thread
        loop = self._loop
        if loop is None or loop.is_closed() or not self.running:
            logger.warning("Rates changed while PriceBot is not running, skipping update")
            return
        try:
            loop.call_soon_threadsafe(self._spawn_rate_update)
        except RuntimeError:
            logger.warning("Event loop closed, skipping update after rate change")

    def _spawn_rate_update(self) -> None:
        # Runs on the event loop; tracked in _tasks so stop() waits for it
        if not self.running:
            logger.warning("PriceBot stopped before rate change update, skipping it")
            return
        self._spawn(self.update_all_messages())

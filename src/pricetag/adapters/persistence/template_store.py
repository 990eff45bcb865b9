# src/pricetag/adapters/persistence/template_store.py
"""
Template Store - Durable Registry of Tracked Messages

This module keeps the original (pre-substitution) text of every channel post
that contains price tokens, keyed by (channel_id, message_id). The whole
mapping is written to a single JSON document on every mutation, so the bot
can re-render all tracked posts after a restart.

Document format:
    {"<channel_id>": {"<message_id>": {"text": "...", "is_caption": false}}}

Files that USE this module:
- pricetag.app (builds the store from settings)
- pricetag.application.price_bot (tracks and untracks templates)
- tests.test_template_store (unit tests)

Files that this module USES:
- pricetag.domain (TemplateText, TemplateEntry, PersistenceError, StoreCorruptedError)
"""
from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Dict, List, Optional, Union

from pricetag.domain.errors import PersistenceError, StoreCorruptedError
from pricetag.domain.models import TemplateEntry, TemplateText

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATES_FILE = Path("config.json")

Templates = Dict[int, Dict[int, TemplateText]]


def _to_json(templates: Templates) -> dict:
    return {
        str(channel_id): {
            str(message_id): {"text": t.text, "is_caption": t.is_caption}
            for message_id, t in messages.items()
        }
        for channel_id, messages in templates.items()
    }


def _from_json(data: object) -> Templates:
    """
    Parse a persisted document.

    Raises:
        ValueError, TypeError, KeyError: If the document does not match the format
    """
    if not isinstance(data, dict):
        raise TypeError(f"expected an object at top level, got {type(data).__name__}")
    templates: Templates = {}
    for channel_key, messages in data.items():
        if not isinstance(messages, dict):
            raise TypeError(f"channel {channel_key}: expected an object")
        channel: Dict[int, TemplateText] = {}
        for message_key, raw in messages.items():
            text = raw["text"]
            if not isinstance(text, str):
                raise TypeError(f"message {channel_key}/{message_key}: text must be a string")
            channel[int(message_key)] = TemplateText(
                text=text, is_caption=bool(raw.get("is_caption", False))
            )
        templates[int(channel_key)] = channel
    return templates


class TemplateStore:
    """Write-through JSON store of tracked message templates."""

    def __init__(self, path: Union[str, Path] = DEFAULT_TEMPLATES_FILE):
        """
        Open the store, creating an empty document if none exists.

        Args:
            path: Location of the JSON document

        Raises:
            StoreCorruptedError: If an existing document cannot be parsed
            PersistenceError: If the initial empty document cannot be written
        """
        self.path = Path(path)
        self._lock = threading.Lock()
        self._templates: Templates = {}

        with self._lock:
            if not self.path.exists():
                logger.info("No template document at %s, creating an empty one", self.path)
                self._dump()
            self._load()

    def _load(self) -> None:
        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
            self._templates = _from_json(data)
        except OSError as e:
            raise StoreCorruptedError(f"Failed to read template document {self.path}: {e}") from e
        except (ValueError, TypeError, KeyError, AttributeError) as e:
            raise StoreCorruptedError(f"Malformed template document {self.path}: {e}") from e
        count = sum(len(messages) for messages in self._templates.values())
        logger.info("Loaded %d template(s) from %s", count, self.path)

    def _dump(self) -> None:
        """
        Write the current mapping using an atomic write.

        Uses temporary file + atomic rename so a crash never leaves a
        half-written document behind.

        Raises:
            PersistenceError: If the document cannot be written
        """
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            temp_fd, temp_path = tempfile.mkstemp(
                suffix=".json.tmp", dir=str(self.path.parent), text=True
            )
        except OSError as e:
            raise PersistenceError(f"Failed to save template document {self.path}: {e}") from e

        try:
            with os.fdopen(temp_fd, "w", encoding="utf-8") as f:
                json.dump(_to_json(self._templates), f, ensure_ascii=False, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(temp_path, str(self.path))
        except (OSError, TypeError, ValueError) as e:
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise PersistenceError(f"Failed to save template document {self.path}: {e}") from e

    def add(self, channel_id: int, message_id: int, template: TemplateText) -> None:
        """
        Insert or replace the template of a message and persist it.

        Raises:
            PersistenceError: If persisting fails; the in-memory entry is restored
        """
        with self._lock:
            messages = self._templates.setdefault(channel_id, {})
            previous = messages.get(message_id)
            messages[message_id] = template
            try:
                self._dump()
            except PersistenceError:
                if previous is None:
                    del messages[message_id]
                    if not messages:
                        del self._templates[channel_id]
                else:
                    messages[message_id] = previous
                raise
        logger.debug("Template stored for %s/%s", channel_id, message_id)

    def delete(self, channel_id: int, message_id: int) -> None:
        """
        Stop tracking a message. Deleting an untracked message is a no-op.

        Raises:
            PersistenceError: If persisting fails; the in-memory entry is restored
        """
        with self._lock:
            messages = self._templates.get(channel_id)
            if messages is None or message_id not in messages:
                return
            previous = messages.pop(message_id)
            if not messages:
                del self._templates[channel_id]
            try:
                self._dump()
            except PersistenceError:
                self._templates.setdefault(channel_id, {})[message_id] = previous
                raise
        logger.debug("Template removed for %s/%s", channel_id, message_id)

    def get(self, channel_id: int, message_id: int) -> Optional[TemplateText]:
        with self._lock:
            return self._templates.get(channel_id, {}).get(message_id)

    def list_templates(self) -> List[TemplateEntry]:
        """Return a consistent snapshot of every tracked template."""
        with self._lock:
            return [
                TemplateEntry(channel_id=channel_id, message_id=message_id, template=template)
                for channel_id, messages in self._templates.items()
                for message_id, template in messages.items()
            ]

    def __len__(self) -> int:
        with self._lock:
            return sum(len(messages) for messages in self._templates.values())

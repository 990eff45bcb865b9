# src/pricetag/domain/models.py
"""
Domain Models - Pure Business Objects

This module contains domain models representing core business concepts:
- Rich-text formatting spans
- Tracked template texts and entries
- Inbound message events and outbound edit requests
- Exchange rate tables

Files that USE this module:
- pricetag.application.* (rate cache and bot use domain models)
- pricetag.adapters.* (adapters create and use domain models)
- tests.* (tests use domain models for test data)

Files that this module USES:
- None (pure domain layer, no external dependencies)
"""

from __future__ import annotations  # Enable postponed evaluation of annotations

from dataclasses import dataclass, field  # Decorators for creating data classes
from datetime import datetime  # Date/time utilities for timestamps
from enum import Enum  # Closed set of formatting styles
from typing import Mapping, Optional  # Type hints for mappings and optional values


class SpanStyle(str, Enum):
    """Formatting styles that survive a re-render."""
    BOLD = "bold"
    ITALIC = "italic"
    LINK = "link"


@dataclass(frozen=True)
class FormatSpan:
    """
    Rich-text decoration over a range of the original text.

    Attributes:
        offset: Start of the range in UTF-16 code units
        length: Length of the range in UTF-16 code units
        style: Formatting style
        url: Link target, only set for SpanStyle.LINK
    """
    offset: int
    length: int
    style: SpanStyle
    url: Optional[str] = None


@dataclass(frozen=True)
class TemplateText:
    """
    Original, pre-substitution text of a tracked message.

    Attributes:
        text: Span-resolved HTML markup still containing price tokens
        is_caption: True if the text is a media caption rather than a body
    """
    text: str
    is_caption: bool = False


@dataclass(frozen=True)
class TemplateEntry:
    """A tracked message keyed by (channel_id, message_id)."""
    channel_id: int
    message_id: int
    template: TemplateText


@dataclass(frozen=True)
class InboundMessage:
    """
    Channel post (new or edited) as delivered by the transport.

    The caption is only used when the body text is empty.
    """
    channel_id: int
    message_id: int
    body_text: str = ""
    body_spans: tuple[FormatSpan, ...] = ()
    caption_text: str = ""
    caption_spans: tuple[FormatSpan, ...] = ()


@dataclass(frozen=True)
class EditRequest:
    """Rendered text to be written back into an existing message."""
    channel_id: int
    message_id: int
    is_caption: bool
    rendered_text: str


@dataclass(frozen=True)
class RateTable:
    """
    Per-unit rates of every known currency against the reference currency.

    Attributes:
        rates: ISO 4217 numeric code -> reference units per 1 unit
        source: Name of the provider that produced the table
        fetched_at: When the table was fetched
    """
    rates: Mapping[int, float] = field(default_factory=dict)
    source: str = ""
    fetched_at: Optional[datetime] = None

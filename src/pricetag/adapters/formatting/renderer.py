# src/pricetag/adapters/formatting/renderer.py
"""
Price Renderer - Token Substitution and Rich-Text Reconstruction

This module turns channel post templates into the text the channel readers
see. It has two steps, always applied in this order:

1. format_spans: rebuild Telegram HTML markup from the plain text and its
   formatting spans (bold, italic, text links). Span offsets refer to the
   original text, so this runs before any substitution.
2. Renderer.render: replace every price token (``$price:12.5``) in the markup
   with the amount in both currencies, e.g. ``12.50₴ (25.10₽)``.

Files that USE this module:
- pricetag.application.price_bot (detects templates and renders them)
- pricetag.app (builds the Renderer from settings)
- tests.test_renderer (unit tests)

Files that this module USES:
- pricetag.domain (FormatSpan, SpanStyle, UnknownCurrencyError)
"""
from __future__ import annotations

import html
import logging
import math
import re
from functools import lru_cache
from typing import Pattern, Protocol, Sequence

from pricetag.domain.errors import UnknownCurrencyError
from pricetag.domain.models import FormatSpan, SpanStyle

logger = logging.getLogger(__name__)

DEFAULT_MARKER = "$price"
UAH_CODE = 980
RUB_CODE = 643

# Markup built by format_spans escapes "<" and ">" inside text and attributes
_TAG_PATTERN = re.compile(r"(<[^>]*>)")


class Converter(Protocol):
    """Anything that converts amounts between numeric currency codes."""
    def convert(self, amount: float, source_code: int, target_code: int) -> float:
        ...


@lru_cache(maxsize=16)
def price_pattern(marker: str = DEFAULT_MARKER) -> Pattern[str]:
    """Compile the token regex for a marker: ``<marker>:<digits>[.<digits>]``."""
    return re.compile(re.escape(marker) + r":(\d+(?:\.\d+)?)")


def is_template(text: str, marker: str = DEFAULT_MARKER) -> bool:
    """Return True if the text contains at least one well-formed price token."""
    if not text:
        return False
    return price_pattern(marker).search(text) is not None


# -------- rich-text spans --------

def _utf16_slice(units: bytes, start: int, end: int) -> str:
    # Telegram counts offsets in UTF-16 code units, 2 bytes each
    return units[start * 2:end * 2].decode("utf-16-le", errors="replace")


def _wrap(span: FormatSpan, body: str) -> str:
    if span.style is SpanStyle.BOLD:
        return f"<b>{body}</b>"
    if span.style is SpanStyle.ITALIC:
        return f"<i>{body}</i>"
    if span.style is SpanStyle.LINK:
        href = html.escape(span.url or "", quote=True)
        return f'<a href="{href}">{body}</a>'
    return body


def format_spans(text: str, spans: Sequence[FormatSpan]) -> str:
    """
    Rebuild HTML markup from plain text and its formatting spans.

    Spans must be ordered by offset. A span that starts before the end of the
    previously emitted span is skipped (the earlier span wins); a span running
    past the end of the text is clamped, one starting past the end is dropped.
    Text outside spans is copied as is.
    All text is HTML-escaped.

    Args:
        text: Plain message text
        spans: Formatting spans with UTF-16 offsets into ``text``

    Returns:
        Markup suitable for Telegram's HTML parse mode
    """
    if not spans:
        return html.escape(text, quote=False)

    units = text.encode("utf-16-le")
    total = len(units) // 2
    parts = []
    cursor = 0

    for span in spans:
        if span.offset < cursor or span.offset >= total or span.length <= 0:
            continue
        start = span.offset
        end = min(span.offset + span.length, total)
        parts.append(html.escape(_utf16_slice(units, cursor, start), quote=False))
        parts.append(_wrap(span, html.escape(_utf16_slice(units, start, end), quote=False)))
        cursor = end

    if cursor < total:
        parts.append(html.escape(_utf16_slice(units, cursor, total), quote=False))
    return "".join(parts)


# -------- price tokens --------

class Renderer:
    """Replaces price tokens with source and target currency amounts."""

    def __init__(
        self,
        converter: Converter,
        marker: str = DEFAULT_MARKER,
        source_code: int = UAH_CODE,
        target_code: int = RUB_CODE,
        source_symbol: str = "₴",
        target_symbol: str = "₽",
    ):
        self.converter = converter
        self.marker = marker
        self.source_code = source_code
        self.target_code = target_code
        self.source_symbol = source_symbol
        self.target_symbol = target_symbol
        self._pattern = price_pattern(marker)

    def is_template(self, text: str) -> bool:
        return is_template(text, self.marker)

    def render(self, text: str) -> str:
        """
        Replace every price token, left to right.

        Only text between tags is substituted; tags and their attribute
        values (link targets) are copied unchanged. Tokens that cannot be
        converted are left unchanged.

        Returns:
            Rendered text, or the input itself if it holds no tokens
        """
        if not self.is_template(text):
            return text
        # split() with a capture group puts tags at odd indexes
        parts = _TAG_PATTERN.split(text)
        for i in range(0, len(parts), 2):
            parts[i] = self._pattern.sub(self._replace_token, parts[i])
        return "".join(parts)

    def _replace_token(self, match: re.Match) -> str:
        token = match.group(0)
        try:
            amount = float(match.group(1))
        except ValueError:
            logger.warning("Unparsable price token %r left as is", token)
            return token
        if not math.isfinite(amount):
            logger.warning("Price token %r out of range, left as is", token)
            return token

        try:
            return self.format_price(amount)
        except UnknownCurrencyError as e:
            logger.warning("Cannot convert price token %r: %s", token, e)
            return token

    def format_price(self, amount: float) -> str:
        """Format an amount in both currencies, e.g. ``10.50₴ (420.00₽)``."""
        converted = self.converter.convert(amount, self.source_code, self.target_code)
        return f"{amount:.2f}{self.source_symbol} ({converted:.2f}{self.target_symbol})"

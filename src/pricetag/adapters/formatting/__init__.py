# src/pricetag/adapters/formatting/__init__.py
"""
Formatting Adapters - Price Rendering

This package turns price templates into Telegram HTML with converted prices.
"""

from pricetag.adapters.formatting.renderer import (
    Renderer,
    format_spans,
    is_template,
)

__all__ = [
    "Renderer",
    "format_spans",
    "is_template",
]

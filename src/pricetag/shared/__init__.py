# src/pricetag/shared/__init__.py
"""
Shared Utilities - Cross-cutting Concerns

This package contains shared utilities used across all layers:
- Validation
- Logging configuration
"""

from pricetag.shared.validators import (
    validate_bot_token,
    validate_currency_code,
    validate_price_marker,
)
from pricetag.shared.logging_conf import setup_logging

__all__ = [
    "validate_bot_token",
    "validate_currency_code",
    "validate_price_marker",
    "setup_logging",
]

# src/pricetag/shared/validators.py
"""
Input Validation Utilities - Configuration Validation

This module provides validation functions for bot configuration: the bot
token, ISO 4217 currency codes and the price token marker.

Files that USE this module:
- pricetag.config.settings (uses validation functions in Settings field validators)

Files that this module USES:
- None (pure utility functions)
"""
import re


def validate_bot_token(token: str) -> bool:
    """
    Validate Telegram bot token format.

    Args:
        token: Bot token to validate

    Returns:
        True if valid, False otherwise
    """
    if not token:
        return False

    # Bot tokens should be in format: 123456789:ABCDEFghijklmnopQRSTUVwxyz
    pattern = r'^\d{8,10}:[A-Za-z0-9_-]{35}$'
    return bool(re.match(pattern, token))


def validate_currency_code(code: int) -> bool:
    """
    Validate an ISO 4217 numeric currency code (e.g. 980 for UAH).

    Args:
        code: Numeric currency code

    Returns:
        True if valid, False otherwise
    """
    return isinstance(code, int) and 0 < code < 1000


def validate_price_marker(marker: str) -> bool:
    """
    Validate the literal that starts a price token.

    The marker is followed by ':' inside a token, so it must not contain ':'
    itself, and it must not contain whitespace.

    Args:
        marker: Marker to validate (e.g. "$price")

    Returns:
        True if valid, False otherwise
    """
    if not marker:
        return False
    return ":" not in marker and not re.search(r"\s", marker)

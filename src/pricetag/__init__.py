# src/pricetag/__init__.py
"""
PriceTag - Live Dual-Currency Price Tags for Telegram Channels

A Telegram bot that finds price tokens such as ``$price:120`` in channel
posts, rewrites them into UAH/RUB price strings, and re-edits every tracked
post whenever the central bank exchange rate changes.
"""

__version__ = "1.0.0"

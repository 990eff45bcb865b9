# src/pricetag/adapters/__init__.py
"""
Adapters Layer - External Interfaces

This package contains all adapters for external systems:
- Providers (rate feeds)
- Telegram (bot interface)
- Persistence (template storage)
- Formatting (price rendering)
"""

__all__ = []

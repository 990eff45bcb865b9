# src/pricetag/adapters/persistence/__init__.py
"""
Persistence Adapters - Data Storage

This package contains adapters for persisting data:
- File-based template storage (JSON)
"""

from pricetag.adapters.persistence.template_store import TemplateStore

__all__ = [
    "TemplateStore",
]

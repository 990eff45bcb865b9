# src/pricetag/domain/__init__.py
"""
Domain Layer - Pure Business Objects

This package contains domain models and business rules.
No dependencies on infrastructure or external systems.
"""

from pricetag.domain.models import (
    EditRequest,
    FormatSpan,
    InboundMessage,
    RateTable,
    SpanStyle,
    TemplateEntry,
    TemplateText,
)
from pricetag.domain.errors import (
    AlreadyStartedError,
    DomainError,
    EditError,
    LifecycleError,
    NotRunningError,
    PersistenceError,
    RateFetchError,
    ShutdownTimeoutError,
    StoreCorruptedError,
    UnknownCurrencyError,
)

__all__ = [
    "EditRequest",
    "FormatSpan",
    "InboundMessage",
    "RateTable",
    "SpanStyle",
    "TemplateEntry",
    "TemplateText",
    "DomainError",
    "RateFetchError",
    "UnknownCurrencyError",
    "PersistenceError",
    "StoreCorruptedError",
    "EditError",
    "LifecycleError",
    "AlreadyStartedError",
    "NotRunningError",
    "ShutdownTimeoutError",
]

# src/pricetag/domain/errors.py
"""
Domain Errors - Business Logic Exceptions

This module defines domain-specific exceptions raised by the rate cache,
the template store, the message editor and the bot lifecycle.
"""


class DomainError(Exception):
    """Base exception for domain errors."""
    pass


class RateFetchError(DomainError):
    """Raised when exchange rates cannot be fetched or parsed."""
    pass


class UnknownCurrencyError(DomainError):
    """Raised when a currency code is missing from the cached rate table."""
    pass


class PersistenceError(DomainError):
    """Raised when the template document cannot be written to disk."""
    pass


class StoreCorruptedError(DomainError):
    """Raised when the persisted template document cannot be loaded."""
    pass


class EditError(DomainError):
    """Raised when an outbound message edit fails."""
    pass


class LifecycleError(DomainError):
    """Base exception for invalid start/stop transitions."""
    pass


class AlreadyStartedError(LifecycleError):
    """Raised when start() is called on a running bot."""
    pass


class NotRunningError(LifecycleError):
    """Raised when stop() is called on a bot that is not running."""
    pass


class ShutdownTimeoutError(LifecycleError):
    """Raised when the message loop does not finish within the grace period."""
    pass

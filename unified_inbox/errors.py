"""Exceptions raised by the inbox engine and its store adapters."""


class InboxError(Exception):
    """Base class for inbox errors"""
    pass


class StoreError(InboxError):
    """Raised when a record store read or write fails"""
    pass


class UnknownSourceError(InboxError, ValueError):
    """Raised when an item id or source value does not name a known source"""
    pass

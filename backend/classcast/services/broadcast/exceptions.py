"""
Broadcast Exceptions

Custom exceptions for broadcast pipeline errors.
"""


class BroadcastError(Exception):
    """Base exception for broadcast errors"""
    pass


class InterimMessageNotAllowedError(BroadcastError):
    """Raised when an interim message is offered for session history"""
    pass


class TranslationProviderError(BroadcastError):
    """Raised by provider clients for empty or malformed responses"""
    pass

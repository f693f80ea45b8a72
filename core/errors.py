"""
Shared Exception Bases

Service-specific errors in each service's protocols.py subclass these,
so callers can handle a whole category (e.g. any NotFoundError) without
importing every service.
"""


class CommerceError(Exception):
    """Base exception for commerce services"""
    pass


class ValidationError(CommerceError):
    """Missing field, illegal state transition or amount out of range.

    Raised before any mutation.
    """
    pass


class NotFoundError(CommerceError):
    """Order, seller or product absent"""
    pass


class ExternalServiceError(CommerceError):
    """External collaborator (payment gateway) failed; safe to retry"""
    pass


class ConcurrencyError(CommerceError):
    """Optimistic version check failed on write"""
    pass


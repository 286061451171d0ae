"""
Domain Errors - Business Logic Exceptions

Failure taxonomy for the price pipeline. Only TransientThrottle is ever
retried, and only through the rate-limit coordinator's cooldown.
"""
from typing import Optional


class DomainError(Exception):
    """Base exception for domain errors."""
    pass


class ValidationError(DomainError):
    """Raised when a position is missing a required field or holds an invalid value."""
    pass


class TransientThrottle(DomainError):
    """Raised when the price API is (or is believed to be) throttling us."""
    pass


class UpstreamError(DomainError):
    """
    Raised when the price API fails for a reason other than throttling.

    Attributes:
        status_code: HTTP status when the failure had one, otherwise None
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ComputationError(DomainError):
    """Raised when performance cannot be computed (e.g. zero historical price)."""
    pass

"""Service error taxonomy.

Every error carries an HTTP status so the API layer can render it without
knowing which service raised it.
"""

from typing import Any


class ServiceError(Exception):
    """Base exception for all service errors."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(ServiceError):
    """Referenced lead, contact or handoff does not exist."""

    def __init__(self, message: str = "Resource not found", **kwargs):
        super().__init__(message, status_code=404, **kwargs)


class ValidationFailedError(ServiceError):
    """Input is malformed or a required field is missing."""

    def __init__(self, message: str = "Validation failed", **kwargs):
        super().__init__(message, status_code=422, **kwargs)


class InvalidTransitionError(ServiceError):
    """Requested lead status change is not allowed from the current status."""

    def __init__(self, message: str = "Status transition not allowed", **kwargs):
        super().__init__(message, status_code=409, **kwargs)


class IdentityConflictError(ServiceError):
    """A concurrent writer claimed the same phone or external id.

    Raised internally and resolved by retrying the unit of work.
    """

    def __init__(self, message: str = "Identity conflict", **kwargs):
        super().__init__(message, status_code=409, **kwargs)


class TransientStoreError(ServiceError):
    """The store failed in a way the caller may retry."""

    def __init__(self, message: str = "Store temporarily unavailable", **kwargs):
        super().__init__(message, status_code=503, **kwargs)


class NotifierError(ServiceError):
    """Outbound notification could not be delivered."""

    def __init__(self, message: str = "Notification failed", **kwargs):
        super().__init__(message, status_code=502, **kwargs)

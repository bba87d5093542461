class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is missing, malformed or violates domain rules."""


class NotFoundError(DomainError):
    """Raised when a referenced student, class or user does not exist."""


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action.

    Also covers attempts to change attendance outside the edit window.
    """


class SyncError(DomainError):
    """Raised when a bulk sync transaction fails; nothing was committed."""

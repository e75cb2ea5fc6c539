class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class DuplicateError(ValidationError):
    """Raised when a unique field (iqama id, vehicle number, username) is already taken."""


class NotFoundError(DomainError):
    """Raised when the requested record does not exist (or was deleted)."""


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid or no session exists."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

class DomainError(Exception):
    """Base exception for business rule violations."""


class UnauthenticatedError(DomainError):
    """Raised when a request carries no valid session."""


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""


class NotLinkedError(DomainError):
    """Raised when an account has no Person profile attached."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class NotFoundError(DomainError):
    """Raised when a referenced record does not exist."""


class ConflictError(DomainError):
    """Raised when the current state does not allow the transition."""


class AlreadyPunchedIn(ConflictError):
    pass


class AlreadyPunchedOut(ConflictError):
    pass


class NoPunchInYet(ConflictError):
    pass


class AlreadyMarked(ConflictError):
    """Today's row is already closed as absent or leave."""


class StorageError(DomainError):
    """Raised when the database rejects or fails an operation."""

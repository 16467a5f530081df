"""Exceptions raised by the account and session services."""


class AccountError(RuntimeError):
    """Base class for account and session errors."""


class UsernameTaken(AccountError):
    """The (case-insensitive) username is already registered."""


class InvalidCredentials(AccountError):
    """Unknown username or wrong password."""


class Unauthorized(AccountError):
    """Session token is missing, unknown or expired."""


class PermissionDenied(AccountError):
    """The resource is not owned by the authenticated account."""


class InternalError(AccountError):
    """Storage failure, broken identifier mapping, or hashing unavailable."""


class SessionCreationFailed(InternalError):
    """Failed to create a session in the session store."""


class SessionDeletionFailed(InternalError):
    """Failed to delete a session in the session store."""

"""
Domain Error Taxonomy

- ValidationError: bad input, rejected before any mutation
- NotFoundError / AlreadyTerminalError: nothing to act on, a no-op for the caller
- PermissionDeniedError: caller is neither the owner nor an administrator
- StorageError: infrastructure or transaction failure, safe to retry

A lost availability race is not an error; it is returned as a ``Conflict``
result by the reservation services.
"""


class DomainError(Exception):
    """Base class for errors raised by domain and application code."""

    code = 'domain_error'

    def __init__(self, message: str = '', **context):
        super().__init__(message)
        self.message = message
        self.context = context


class ValidationError(DomainError):
    code = 'invalid'


class InvalidRangeError(ValidationError, ValueError):
    """Raised when a date range does not satisfy ``start < end``."""

    code = 'invalid_range'


class NotFoundError(DomainError):
    code = 'not_found'


class AlreadyTerminalError(NotFoundError):
    """The object exists but has no transition left to perform."""

    code = 'already_terminal'


class PermissionDeniedError(DomainError):
    code = 'permission_denied'


class StorageError(DomainError):
    code = 'storage_error'

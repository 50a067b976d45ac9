"""Check-in error taxonomy.

Client errors (never retried):
    - InvalidIdentity: user id path segment is not a valid integer id
    - InvalidRequest: body or query parameter failed validation

Server errors (surfaced as-is, never retried automatically):
    - PersistenceFailure: the store failed to read or write
    - StoreUnavailable: the database could not be reached
    - StoreConstraintViolation: the database rejected the row

The driver exception that caused a persistence error is chained as
``__cause__`` so it can be logged without becoming the user-facing message.
"""

from typing import Any


class CheckInError(Exception):
    """Base class for check-in errors."""

    status_code: int = 500

    def __init__(self, message: str, details: Any = None) -> None:
        """Initialize error.

        Args:
            message: User-facing message
            details: Extra context for the response body
        """
        super().__init__(message)
        self.message = message
        self.details = details


class InvalidIdentity(CheckInError):
    """User id is not a well-formed integer identifier."""

    status_code = 400


class InvalidRequest(CheckInError):
    """Request body or parameters are malformed."""

    status_code = 400


class PersistenceFailure(CheckInError):
    """Backing store failed to complete a read or write."""

    status_code = 500


class StoreUnavailable(PersistenceFailure):
    """Backing store is unreachable."""

    status_code = 503


class StoreConstraintViolation(PersistenceFailure):
    """Backing store rejected a write on an integrity constraint."""

    status_code = 500

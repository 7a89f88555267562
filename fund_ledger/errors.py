"""
Ledger Error Taxonomy

Every failure the ledger can report carries its own HTTP status and a
stable, human-readable message. Errors are raised where they occur and
mapped to a response exactly once, by the API exception handler.
"""

from typing import Optional


class LedgerError(Exception):
    """Base class for all ledger failures"""

    status_code: int = 500
    message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class NotAuthenticated(LedgerError):
    """No user identity stored in the session"""
    status_code = 401
    message = "Not logged in"


class SessionCorrupted(LedgerError):
    """Session handle present but could not be decoded"""
    status_code = 400
    message = "Session could not be decoded"


class NotFound(LedgerError):
    """Unknown scope kind or route"""
    status_code = 404
    message = "Page not found"


class InvalidIdentifier(LedgerError):
    """Path identifier is not a non-negative integer"""
    status_code = 400
    message = "ID must be integer"


class InvalidRequest(LedgerError):
    """Caller supplied a value the ledger refuses"""
    status_code = 400
    message = "Invalid request"


class InvalidCredentials(LedgerError):
    """Login failed; does not say whether the email or password was wrong"""
    status_code = 400
    message = "Could not login with those credentials"


class Denied(LedgerError):
    """
    Ownership check failed.

    Raised both when the scope does not exist and when it belongs to
    someone else, so callers cannot probe for other users' records.
    """
    status_code = 400
    message = "No appropriate fund_source or budget with that ID"


class StorageUnavailable(LedgerError):
    """The storage engine could not complete a statement"""
    status_code = 500
    message = "Storage unavailable"


class SerializationFailed(LedgerError):
    """A domain record could not be encoded for the wire"""
    status_code = 500
    message = "Could not encode response"

"""
Session error taxonomy.

The registry and the stores raise these; the HTTP layer translates
them into responses (see `app.main`).  Expected business outcomes such
as reactivation are normal return values, never errors.
"""


class SessionError(Exception):
    """Base class for every session-domain failure."""

    def __init__(self, message: str, *, session_id: str | None = None):
        super().__init__(message)
        self.message = message
        self.session_id = session_id


class ValidationError(SessionError):
    """Missing or malformed caller input."""


class NotFoundError(SessionError):
    """No record exists for the given session id."""


class SessionClosedError(NotFoundError):
    """The record exists but was logged out or terminated."""


class ExpiredError(SessionError):
    """The session crossed the inactivity threshold and is now Inactive."""


class DuplicateError(SessionError):
    """A write collided with a uniqueness rule enforced by the store."""


class StorageUnavailableError(SessionError):
    """The backend is unreachable or did not answer in time."""

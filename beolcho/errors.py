"""
Domain error taxonomy.

Services raise these; main.py turns them into JSON responses with the
status code declared on each class. Nothing is retried automatically.
"""


class BeolchoError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AuthorizationError(BeolchoError):
    """Action needs ADMIN or ownership."""

    status_code = 403


class ValidationError(BeolchoError):
    """Required input missing or malformed; raised before any write or upload."""

    status_code = 400


class NotFoundError(BeolchoError):
    status_code = 404


class TransientIOError(BeolchoError):
    """Store or blob failure. The user re-triggers the action."""

    status_code = 503

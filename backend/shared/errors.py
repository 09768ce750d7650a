"""Error taxonomy shared by the API and the repository layer.

Each error carries the HTTP status the API boundary translates it to and a
message that is safe to return to the caller.
"""

from __future__ import annotations


class TimerError(Exception):
    """Base class for expected timer failures."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(TimerError):
    """Malformed or missing required input."""

    status_code = 400


class NotFoundError(TimerError):
    """Unknown timer id, or a timer owned by another shop."""

    status_code = 404


class MalformedIdentifierError(TimerError):
    """Timer id that cannot address storage."""

    status_code = 400


class StorageError(TimerError):
    """Unexpected backend failure; the message is generic."""

    status_code = 500

"""Error taxonomy shared by services, routers and scripts.

Each class carries the HTTP status the API answers with.
"""

from __future__ import annotations


class PPDError(Exception):
    """Base class for expected business failures."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(PPDError):
    """Missing or malformed input."""


class ConflictError(PPDError):
    """Operation not allowed in the record's current state (already processed)."""


class DuplicateError(ConflictError):
    status_code = 409


class InvalidCredentialsError(PPDError):
    status_code = 401


class AuthorizationError(PPDError):
    status_code = 403


class NotFoundError(PPDError):
    status_code = 404

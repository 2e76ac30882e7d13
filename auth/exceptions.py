"""
Account and session errors.

Every error carries the HTTP status and the public message rendered to the
client; internal detail stays in the server log.
"""

from __future__ import annotations

from fastapi import status


class AccountError(Exception):
    """Base exception for the account workflow."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    public_message: str = "Internal server error."

    def __init__(self, message: str | None = None):
        super().__init__(message or self.public_message)
        self.public_message = message or self.public_message


class ValidationFailed(AccountError):
    """Raised when required request fields are missing or malformed."""

    status_code = status.HTTP_400_BAD_REQUEST
    public_message = "All fields are required."


class AccountConflict(AccountError):
    """Raised when the username or email is already taken."""

    status_code = status.HTTP_409_CONFLICT
    public_message = "Username or email already exists."


class InvalidCredentials(AccountError):
    """Raised for an unknown username or a wrong password alike."""

    status_code = status.HTTP_401_UNAUTHORIZED
    public_message = "Invalid username or password."


class NotAuthenticated(AccountError):
    status_code = status.HTTP_401_UNAUTHORIZED
    public_message = "Unauthorized"


class SessionDestroyError(AccountError):
    """Raised when a session record could not be removed from the store."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    public_message = "Could not log out, please try again."

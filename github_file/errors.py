"""Errors raised by the GitHub file client.

Routes catch ``RemoteFileError`` and turn it into an HTTP response; the
subclasses let them pick the status code.
"""

from __future__ import annotations

from typing import Optional


class RemoteFileError(Exception):
    """Any failed call to the hosted repository API."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class AuthError(RemoteFileError):
    """Bad or missing token (401/403)."""


class NotFoundError(RemoteFileError):
    """Repository, branch or file does not exist (404)."""


class ConflictError(RemoteFileError):
    """The sha sent with a write is no longer the file's current revision (409)."""


def error_for_status(status_code: int, message: str) -> RemoteFileError:
    if status_code in (401, 403):
        return AuthError(message, status_code)
    if status_code == 404:
        return NotFoundError(message, status_code)
    if status_code == 409:
        return ConflictError(message, status_code)
    return RemoteFileError(message, status_code)

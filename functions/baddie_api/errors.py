"""
Exception types raised by the record store, identity verifier and
notification dispatcher. The app maps each to an HTTP status.
"""

from __future__ import annotations


class BaddieApiError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class Unauthenticated(BaddieApiError):
    """Missing, malformed, expired or rejected bearer token."""

    status_code = 401


class NotFound(BaddieApiError):
    """Unknown profile or user."""

    status_code = 404


class DispatchFailed(BaddieApiError):
    """The push service refused or failed to accept a message."""

    status_code = 500

    def __init__(self, message: str, cause: Exception | None = None):
        super().__init__(message)
        self.cause = cause


class InvalidRecord(BaddieApiError):
    """A record is missing a required field and was not stored."""

    status_code = 500

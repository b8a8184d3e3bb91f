"""Exceptions raised by the web login flow.

Every terminal failure of a login session is a :class:`LoginError`
subclass, so callers can catch the whole family or tell a timeout
(prompt the user to retry) apart from a cancellation or a setup problem.
"""

from __future__ import annotations


class LoginError(Exception):
    """Raised when the web login does not produce credentials."""


class LoginSetupError(LoginError):
    """Raised when the local endpoint or the browser cannot be started."""


class LoginTimeoutError(LoginError, TimeoutError):
    """Raised when no valid callback arrives before the deadline."""

    def __init__(self, message: str, timeout: float | None = None) -> None:
        super().__init__(message)
        self.timeout = timeout


class LoginCancelledError(LoginError):
    """Raised when the caller cancels the login before it completes."""


class LoginServerError(LoginError):
    """Raised when the local endpoint stops unexpectedly mid-login."""

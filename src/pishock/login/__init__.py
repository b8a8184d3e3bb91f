"""Browser-mediated local login for pishock.

Obtains the ``(user_id, token)`` credential pair by serving a small login
page on a loopback port, opening it in the user's browser, and waiting
for the page to forward the credentials from the PiShock login popup.

Public API:
    WebLogin -- One login session (ephemeral endpoint + browser + wait)
    login -- Convenience wrapper running a fresh WebLogin
    LoginResultSlot -- Single-assignment result shared with the endpoint
    LoginError and subclasses -- Terminal failures of a login
"""

from pishock.login.errors import (
    LoginCancelledError,
    LoginError,
    LoginServerError,
    LoginSetupError,
    LoginTimeoutError,
)
from pishock.login.result import LoginResultSlot

__all__ = [
    "LoginCancelledError",
    "LoginError",
    "LoginResultSlot",
    "LoginServerError",
    "LoginSetupError",
    "LoginTimeoutError",
    "WebLogin",
    "login",
]


def __getattr__(name: str) -> object:
    """Lazy import for the orchestrator, which pulls in uvicorn and FastAPI."""
    if name == "WebLogin":
        from pishock.login.web_login import WebLogin
        return WebLogin
    if name == "login":
        from pishock.login.web_login import login
        return login
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

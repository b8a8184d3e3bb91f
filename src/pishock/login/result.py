"""Single-assignment result slot for a login session.

The local endpoint and the login orchestrator share one
:class:`LoginResultSlot`. Whoever settles it first wins: the first valid
browser callback, the deadline, a cancellation, or a server fault. Every
later settlement attempt is a no-op, so a duplicate callback or a
callback racing the deadline can never change the outcome.
"""

from __future__ import annotations

import asyncio
import logging

from pishock.domain.models import Credentials
from pishock.login.errors import LoginError, LoginTimeoutError

logger = logging.getLogger(__name__)


class LoginResultSlot:
    """Write-once cell holding either credentials or a login failure.

    All methods must be called from the event loop thread that runs the
    login endpoint. ``resolve`` and ``fail`` never await, so their
    check-and-set cannot interleave with another coroutine.

    Example usage::

        slot = LoginResultSlot()
        slot.resolve(Credentials(42, "abc"))   # True
        slot.resolve(Credentials(7, "xyz"))    # False, ignored
        credentials = await slot.wait(timeout=120)
    """

    def __init__(self) -> None:
        self._credentials: Credentials | None = None
        self._error: LoginError | None = None
        self._settled = asyncio.Event()

    @property
    def is_settled(self) -> bool:
        return self._settled.is_set()

    @property
    def error(self) -> LoginError | None:
        return self._error

    def resolve(self, credentials: Credentials) -> bool:
        """Settle the slot with ``credentials``.

        Returns:
            True if this call settled the slot, False if it was already
            settled (the call then has no effect).
        """
        if self._settled.is_set():
            logger.debug("Ignoring credentials for user %d: login already settled", credentials.user_id)
            return False
        self._credentials = credentials
        self._settled.set()
        logger.info("Login resolved for user %d", credentials.user_id)
        return True

    def fail(self, error: LoginError) -> bool:
        """Settle the slot with a failure.

        Returns:
            True if this call settled the slot, False if it was already
            settled.
        """
        if self._settled.is_set():
            return False
        self._error = error
        self._settled.set()
        logger.debug("Login failed: %s", error)
        return True

    def result(self) -> Credentials:
        """Return the credentials, or raise the stored failure.

        Raises:
            LoginError: The failure the slot was settled with, or a plain
                LoginError if the slot is still pending.
        """
        if not self._settled.is_set():
            raise LoginError("Login result is not available yet")
        if self._error is not None:
            raise self._error
        assert self._credentials is not None
        return self._credentials

    async def wait(self, timeout: float | None = None) -> Credentials:
        """Wait for the slot to settle and return its credentials.

        If ``timeout`` seconds pass first, the slot is failed with
        :class:`LoginTimeoutError`. A resolution that lands in the same
        instant as the deadline still wins, because ``fail`` is a no-op
        on a settled slot.

        Raises:
            LoginTimeoutError: If the deadline elapsed first.
            LoginError: Any other failure the slot was settled with.
        """
        try:
            await asyncio.wait_for(self._settled.wait(), timeout)
        except asyncio.TimeoutError:
            self.fail(
                LoginTimeoutError(
                    f"Timed out waiting for PiShock login after {timeout:g}s",
                    timeout=timeout,
                )
            )
        return self.result()

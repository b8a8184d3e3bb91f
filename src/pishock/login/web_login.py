"""Browser-mediated PiShock login.

Starts a tiny loopback web server, opens the user's browser on it, and
waits until the login page posts the user's credentials back, the
deadline passes, or the caller cancels. The server is shut down before
:meth:`WebLogin.login` returns, whatever the outcome.

Lifecycle of one session::

    idle -> listening -> resolved | timed_out | cancelled | failed -> closed
"""

from __future__ import annotations

import asyncio
import logging
import socket
import webbrowser
from typing import Callable

import uvicorn

from pishock.config.settings import LoginConfig
from pishock.domain.models import Credentials, LoginState
from pishock.login.errors import (
    LoginCancelledError,
    LoginError,
    LoginServerError,
    LoginSetupError,
    LoginTimeoutError,
)
from pishock.login.page import LOGIN_ORIGIN
from pishock.login.ports import LOOPBACK_HOST, find_free_port
from pishock.login.result import LoginResultSlot
from pishock.login.server import CALLBACK_PATH, bind_loopback_socket, create_app

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 120.0
DEFAULT_SHUTDOWN_TIMEOUT = 5.0
_STARTUP_POLL_INTERVAL = 0.01

BrowserOpener = Callable[[str], "bool | None"]


class WebLogin:
    """One interactive PiShock login through the user's browser.

    An instance runs exactly one login; create a new one to try again.

    Example usage::

        async with WebLogin() as web_login:
            user_id, token = await web_login.login(timeout=120)
    """

    def __init__(
        self,
        port: int | None = None,
        *,
        login_origin: str = LOGIN_ORIGIN,
        timeout: float = DEFAULT_TIMEOUT,
        shutdown_timeout: float = DEFAULT_SHUTDOWN_TIMEOUT,
        browser: BrowserOpener | None = None,
    ) -> None:
        """Initialize the login session.

        Args:
            port: Local port to listen on. A free port is picked when None.
            login_origin: Origin of the PiShock login site. Credential
                messages from any other origin are ignored by the page.
            timeout: Default number of seconds :meth:`login` waits.
            shutdown_timeout: Seconds to wait for the server to stop
                before its task is cancelled.
            browser: Callable opening a URL in a browser; returns False
                when no browser could be launched. Defaults to
                :func:`webbrowser.open`.
        """
        self._requested_port = port
        self._login_origin = login_origin
        self._timeout = timeout
        self._shutdown_timeout = shutdown_timeout
        self._browser = browser or webbrowser.open
        self._state = LoginState.IDLE
        self._outcome: LoginState | None = None
        self._port: int | None = None
        self._result: LoginResultSlot | None = None
        self._sock: socket.socket | None = None
        self._server: uvicorn.Server | None = None
        self._serve_task: asyncio.Task[None] | None = None

    @classmethod
    def from_config(cls, config: LoginConfig, browser: BrowserOpener | None = None) -> WebLogin:
        return cls(
            config.port,
            login_origin=config.login_origin,
            timeout=config.timeout,
            shutdown_timeout=config.shutdown_timeout,
            browser=browser,
        )

    @property
    def state(self) -> LoginState:
        return self._state

    @property
    def outcome(self) -> LoginState | None:
        """Terminal state the login reached, or None while it is undecided."""
        return self._outcome

    @property
    def port(self) -> int | None:
        return self._port

    @property
    def base_url(self) -> str:
        if self._port is None:
            raise LoginError("Login endpoint has no port yet")
        return f"http://{LOOPBACK_HOST}:{self._port}/"

    @property
    def callback_url(self) -> str:
        return self.base_url.rstrip("/") + CALLBACK_PATH

    async def login(
        self,
        timeout: float | None = None,
        cancel: asyncio.Event | None = None,
    ) -> Credentials:
        """Run the login and return the user's credentials.

        Args:
            timeout: Seconds to wait for the browser. Defaults to the
                value given at construction (two minutes).
            cancel: Optional event; setting it aborts the login.

        Raises:
            LoginSetupError: The endpoint or the browser could not be started.
            LoginTimeoutError: No valid callback arrived in time.
            LoginCancelledError: ``cancel`` was set first.
            LoginServerError: The endpoint stopped unexpectedly.
            asyncio.CancelledError: The awaiting task itself was cancelled.
        """
        if self._state is not LoginState.IDLE:
            raise LoginError("A WebLogin session can only run one login")
        timeout = self._timeout if timeout is None else timeout
        result = self._result = LoginResultSlot()

        try:
            await self._start(result)
            await self._open_browser()
            return await self._wait(result, timeout, cancel)
        except asyncio.CancelledError:
            result.fail(LoginCancelledError("PiShock login was cancelled"))
            raise
        except LoginError as e:
            result.fail(e)
            raise
        finally:
            self._record_outcome(result)
            await self.close()

    async def close(self) -> None:
        """Stop the endpoint and release its socket.

        Safe to call more than once and after a partial start.
        """
        if self._state is LoginState.CLOSED:
            return
        try:
            if self._server is not None:
                self._server.should_exit = True
            if self._serve_task is not None:
                await self._stop_serve_task(self._serve_task)
        finally:
            if self._sock is not None:
                self._sock.close()
            self._state = LoginState.CLOSED
            if self._port is not None:
                logger.info("Login endpoint on port %d closed", self._port)

    async def __aenter__(self) -> WebLogin:
        return self

    async def __aexit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: object) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _start(self, result: LoginResultSlot) -> None:
        """Bind the loopback socket and start serving in the background."""
        try:
            self._port = find_free_port(self._requested_port)
            self._sock = bind_loopback_socket(self._port)
        except OSError as e:
            raise LoginSetupError(f"Cannot start login endpoint: {e}") from e

        app = create_app(result, self.callback_url, self._login_origin)
        config = uvicorn.Config(
            app,
            host=LOOPBACK_HOST,
            port=self._port,
            lifespan="off",
            log_config=None,
            log_level="warning",
            access_log=False,
        )
        server = self._server = uvicorn.Server(config)
        serve_task = self._serve_task = asyncio.create_task(
            server.serve(sockets=[self._sock]), name=f"pishock-login-{self._port}"
        )

        while not server.started:
            if serve_task.done():
                cause = None if serve_task.cancelled() else serve_task.exception()
                raise LoginSetupError("Login endpoint failed to start") from cause
            await asyncio.sleep(_STARTUP_POLL_INTERVAL)

        self._state = LoginState.LISTENING
        logger.info("Login endpoint listening on %s", self.base_url)

    async def _open_browser(self) -> None:
        url = self.base_url
        loop = asyncio.get_running_loop()
        try:
            opened = await loop.run_in_executor(None, self._browser, url)
        except (webbrowser.Error, OSError) as e:
            raise LoginSetupError(f"Cannot open a browser for {url}: {e}") from e
        if opened is False:
            raise LoginSetupError(f"No browser available to open {url}")
        logger.info("Opened browser at %s", url)

    async def _wait(
        self,
        result: LoginResultSlot,
        timeout: float,
        cancel: asyncio.Event | None,
    ) -> Credentials:
        """Race the callback/deadline against cancellation and server exit."""
        assert self._serve_task is not None
        waiter = asyncio.ensure_future(result.wait(timeout))
        watched: set[asyncio.Future] = {waiter, self._serve_task}
        cancel_waiter = None
        if cancel is not None:
            cancel_waiter = asyncio.ensure_future(cancel.wait())
            watched.add(cancel_waiter)

        try:
            done, _ = await asyncio.wait(watched, return_when=asyncio.FIRST_COMPLETED)
            if waiter not in done:
                if cancel_waiter is not None and cancel_waiter in done:
                    result.fail(LoginCancelledError("PiShock login was cancelled"))
                else:
                    result.fail(self._server_failure())
            return await waiter
        finally:
            for task in (waiter, cancel_waiter):
                if task is not None and not task.done():
                    task.cancel()

    def _server_failure(self) -> LoginServerError:
        assert self._serve_task is not None
        task = self._serve_task
        cause = None if task.cancelled() else task.exception()
        message = "Login endpoint stopped unexpectedly"
        if cause is not None:
            message = f"{message}: {cause}"
        error = LoginServerError(message)
        error.__cause__ = cause
        return error

    async def _stop_serve_task(self, task: asyncio.Task[None]) -> None:
        if not task.done():
            done, _ = await asyncio.wait({task}, timeout=self._shutdown_timeout)
            if not done:
                logger.warning(
                    "Login endpoint did not stop within %.1fs; cancelling it",
                    self._shutdown_timeout,
                )
                task.cancel()
                await asyncio.wait({task})
        if not task.cancelled() and task.exception() is not None:
            logger.debug("Login endpoint exited with: %r", task.exception())

    def _record_outcome(self, result: LoginResultSlot) -> None:
        error = result.error
        if not result.is_settled:
            outcome = LoginState.FAILED
        elif error is None:
            outcome = LoginState.RESOLVED
        elif isinstance(error, LoginTimeoutError):
            outcome = LoginState.TIMED_OUT
        elif isinstance(error, LoginCancelledError):
            outcome = LoginState.CANCELLED
        else:
            outcome = LoginState.FAILED
        self._outcome = outcome
        self._state = outcome


async def login(
    timeout: float | None = None,
    cancel: asyncio.Event | None = None,
    port: int | None = None,
    **kwargs,
) -> Credentials:
    """Run a one-off browser login with a fresh :class:`WebLogin`."""
    return await WebLogin(port, **kwargs).login(timeout=timeout, cancel=cancel)

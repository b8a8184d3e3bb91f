"""FastAPI app for the ephemeral local login endpoint.

Serves the login page and receives the credentials the page forwards
from the PiShock login popup:

    GET  /          -> login page (text/html)
    POST /callback  <- {"id": 42, "token": "..."}

Every other method or path answers 404. The app is only ever served on
a loopback socket; the callback body is an unauthenticated bearer
credential.
"""

from __future__ import annotations

import logging
import socket

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, PlainTextResponse, Response
from pydantic import ValidationError

from pishock.domain.models import CallbackPayload
from pishock.login.page import LOGIN_ORIGIN, build_login_page
from pishock.login.ports import LOOPBACK_HOST
from pishock.login.result import LoginResultSlot

logger = logging.getLogger(__name__)

CALLBACK_PATH = "/callback"

_ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def bind_loopback_socket(port: int) -> socket.socket:
    """Bind a TCP socket to ``127.0.0.1:port`` for the endpoint to serve on.

    Raises:
        OSError: If the port cannot be bound.
    """
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind((LOOPBACK_HOST, port))
    except OSError:
        sock.close()
        raise
    return sock


def create_app(
    result: LoginResultSlot,
    callback_url: str,
    login_origin: str = LOGIN_ORIGIN,
) -> FastAPI:
    """Create the login endpoint application.

    Args:
        result: Slot settled by the first valid callback.
        callback_url: Absolute URL of the callback route, embedded in the page.
        login_origin: Origin the page accepts credential messages from.
    """
    page = build_login_page(callback_url, login_origin)

    app = FastAPI(
        title="pishock login",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    @app.get("/", response_class=HTMLResponse)
    async def login_page() -> HTMLResponse:
        return HTMLResponse(page)

    @app.post(CALLBACK_PATH)
    async def receive_callback(request: Request) -> Response:
        try:
            body = await request.body()
            try:
                payload = CallbackPayload.model_validate_json(body)
            except ValidationError as e:
                logger.warning(
                    "Rejected login callback: %s",
                    "; ".join(err["msg"] for err in e.errors()),
                )
                return PlainTextResponse("Invalid payload", status_code=400)

            won = result.resolve(payload.to_credentials())
            logger.debug("Login callback for user %d accepted (settled=%s)", payload.id, won)
        except Exception as e:
            logger.exception("Login callback failed")
            return PlainTextResponse(f"Error: {e}", status_code=500)
        return PlainTextResponse("OK")

    @app.api_route("/{path:path}", methods=_ALL_METHODS, include_in_schema=False)
    async def not_found(path: str) -> Response:
        return PlainTextResponse("Not found", status_code=404)

    return app

"""Local port selection for the login endpoint."""

from __future__ import annotations

import logging
import socket

logger = logging.getLogger(__name__)

LOOPBACK_HOST = "127.0.0.1"


def find_free_port(port: int | None = None) -> int:
    """Return ``port`` if given, otherwise a free TCP port on localhost.

    The free port is found by binding a throwaway loopback socket to
    port 0 and reading back the port the OS assigned.

    Raises:
        OSError: If no port can be obtained.
    """
    if port is not None:
        return port
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind((LOOPBACK_HOST, 0))
        free_port = s.getsockname()[1]
    logger.debug("Allocated local port %d", free_port)
    return free_port

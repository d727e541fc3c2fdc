"""A one-shot greeting exchange over TCP."""

from __future__ import annotations

import logging
import socket
from typing import Union

logger = logging.getLogger(__name__)

GREETING = b"Hello there!\0"
RECEIVE_BUFFER_SIZE = 30
LISTEN_BACKLOG = 5
DEFAULT_CLIENT_HOST = "127.0.0.1"


def serve_once(port: Union[int, str], host: str = "") -> tuple:
    """Accept one client on ``port``, send it the greeting and return its address."""
    with socket.create_server((host, int(port)), backlog=LISTEN_BACKLOG) as server:
        logger.info("Listening on port %s", port)
        connection, address = server.accept()
        with connection:
            logger.info("Accepted connection from %s", address[0])
            connection.sendall(GREETING)
    return address


def receive_greeting(port: Union[int, str], host: str = DEFAULT_CLIENT_HOST) -> str:
    """Connect to a server and return the message it sends, up to its terminator."""
    with socket.create_connection((host, int(port))) as connection:
        data = connection.recv(RECEIVE_BUFFER_SIZE - 1)
    message = data.split(b"\0", 1)[0].decode("latin-1")
    logger.info("Read from server: %s", message)
    return message
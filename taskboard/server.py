"""Run the API under uvicorn."""

import errno
import logging
import socket

import uvicorn

from taskboard.config import Settings, get_settings
from taskboard.logging_setup import setup_logging

logger = logging.getLogger(__name__)


def bind_socket(host: str, port: int) -> socket.socket:
    """Bind a listening socket on ``port``, or ``port + 1`` if it is busy.

    Only one alternative port is tried; a second conflict is raised.
    """
    try:
        return _bind(host, port)
    except OSError as exc:
        if exc.errno != errno.EADDRINUSE:
            raise
        logger.warning("Port %d is busy, trying port %d", port, port + 1)
    return _bind(host, port + 1)


def _bind(host: str, port: int) -> socket.socket:
    family = socket.AF_INET6 if ":" in host else socket.AF_INET
    sock = socket.socket(family, socket.SOCK_STREAM)
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    try:
        sock.bind((host, port))
    except OSError:
        sock.close()
        raise
    sock.set_inheritable(True)
    return sock


def serve(settings: Settings | None = None) -> None:
    """Start the server and block until it exits."""
    settings = settings or get_settings()
    setup_logging(level=settings.log_level, log_file=settings.log_path)

    from taskboard.main import create_app

    app = create_app(settings=settings)
    sock = bind_socket(settings.host, settings.port)
    host, port = sock.getsockname()[:2]
    logger.info("Server is running on http://%s:%d", host, port)

    config = uvicorn.Config(app, log_config=None, log_level=settings.log_level.lower())
    uvicorn.Server(config).run(sockets=[sock])

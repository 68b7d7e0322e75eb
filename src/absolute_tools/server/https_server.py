"""HTTPS server for the web application."""

import logging

import uvicorn
from fastapi import FastAPI

from absolute_tools.config import ServerSettings

logger = logging.getLogger(__name__)


def build_server(app: FastAPI, server_info: ServerSettings) -> uvicorn.Server:
    """Build, without starting, a TLS server for ``app``.

    Args:
        app: Application to serve
        server_info: Bind address, HTTPS port and certificate paths

    Returns:
        Configured uvicorn server
    """
    if not server_info.certfile or not server_info.keyfile:
        raise ValueError("HTTPS server requires both certfile and keyfile")

    config = uvicorn.Config(
        app,
        host=server_info.host,
        port=server_info.https_port,
        ssl_certfile=server_info.certfile,
        ssl_keyfile=server_info.keyfile,
        log_config=None,
    )
    return uvicorn.Server(config)


def run(app: FastAPI, server_info: ServerSettings) -> None:
    """Serve ``app`` over HTTPS until interrupted."""
    logger.info(f"Starting HTTPS server on {server_info.host}:{server_info.https_port}")
    build_server(app, server_info).run()

"""Server bootstrap: build the app, then run the HTTPS and redirect servers."""

import asyncio
import logging

import uvicorn

from absolute_tools.config import Config
from absolute_tools.server.app import create_app
from absolute_tools.server.https_server import build_server
from absolute_tools.server.redirect_server import build_server_for_https

logger = logging.getLogger(__name__)


async def serve_all(servers: list[uvicorn.Server]) -> None:
    """Run servers side by side; when one stops, stop the rest."""
    tasks = [asyncio.create_task(server.serve()) for server in servers]
    done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)

    for server in servers:
        server.should_exit = True
    if pending:
        await asyncio.gather(*pending)

    for task in done:
        task.result()


def serve(config: Config) -> None:
    """Start the web application over HTTPS and the HTTP redirect server."""
    info = config.server
    app = create_app(info.static_dir, body_limit=info.body_limit)

    servers = [build_server(app, info), build_server_for_https(info)]
    logger.info(
        f"Serving {info.static_dir} on https://{info.host}:{info.https_port}, "
        f"redirecting from port {info.http_port}"
    )
    asyncio.run(serve_all(servers))

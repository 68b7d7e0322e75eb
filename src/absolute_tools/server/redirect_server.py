"""Plain HTTP server that sends every request to the HTTPS origin."""

import logging

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import RedirectResponse

from absolute_tools.config import ServerSettings

logger = logging.getLogger(__name__)

ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def https_url(request: Request, server_info: ServerSettings) -> str:
    """Build the HTTPS equivalent of the request's URL."""
    hostname = server_info.hostname or request.url.hostname or "localhost"
    port = "" if server_info.https_port == 443 else f":{server_info.https_port}"
    url = f"https://{hostname}{port}{request.url.path}"
    if request.url.query:
        url += f"?{request.url.query}"
    return url


def create_redirect_app(server_info: ServerSettings) -> FastAPI:
    """Create an app that answers every request with a 301 to HTTPS."""
    app = FastAPI(docs_url=None, redoc_url=None, openapi_url=None)

    @app.api_route("/{path:path}", methods=ALL_METHODS)
    async def redirect(request: Request):
        return RedirectResponse(https_url(request, server_info), status_code=301)

    return app


def build_server_for_https(server_info: ServerSettings) -> uvicorn.Server:
    """Build, without starting, the redirect server on the HTTP port."""
    config = uvicorn.Config(
        create_redirect_app(server_info),
        host=server_info.host,
        port=server_info.http_port,
        log_config=None,
    )
    return uvicorn.Server(config)


def run_for_https(server_info: ServerSettings) -> None:
    """Redirect HTTP traffic to HTTPS until interrupted."""
    logger.info(f"Starting redirect server on {server_info.host}:{server_info.http_port}")
    build_server_for_https(server_info).run()

"""Web server for the Absolute client."""

from absolute_tools.server.app import create_app
from absolute_tools.server.main import serve

__all__ = ["create_app", "serve"]

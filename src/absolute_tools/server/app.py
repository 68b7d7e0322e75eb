"""Web application: static client files plus JSON and form body parsing."""

import json
import logging
import re
from pathlib import Path
from typing import Any
from urllib.parse import parse_qsl

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.datastructures import Headers
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from absolute_tools import __version__
from absolute_tools.config import DEFAULT_BODY_LIMIT

logger = logging.getLogger(__name__)

JSON_TYPES = ("application/json",)
FORM_TYPES = ("application/x-www-form-urlencoded",)

# Bracketed numeric keys up to this index become list positions
ARRAY_INDEX_LIMIT = 20

_KEY_RE = re.compile(r"^([^\[\]]+)((?:\[[^\[\]]*\])+)$")
_SEGMENT_RE = re.compile(r"\[([^\[\]]*)\]")


class BodyParseError(Exception):
    """Raised when a request body cannot be parsed."""

    def __init__(self, status_code: int, detail: str) -> None:
        super().__init__(detail)
        self.status_code = status_code
        self.detail = detail


async def read_limited(receive: Receive, headers: Headers, limit: int) -> bytes:
    """Read a request body, giving up as soon as it grows past ``limit`` bytes."""
    declared = headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > limit:
        raise BodyParseError(413, "request entity too large")

    chunks: list[bytes] = []
    total = 0
    while True:
        message = await receive()
        if message["type"] == "http.disconnect":
            raise BodyParseError(400, "client disconnected")
        chunk = message.get("body", b"")
        total += len(chunk)
        if total > limit:
            raise BodyParseError(413, "request entity too large")
        chunks.append(chunk)
        if not message.get("more_body", False):
            return b"".join(chunks)


def parse_json_body(body: bytes) -> Any:
    """Parse a JSON body. Only objects and arrays are accepted at the top level."""
    if not body.strip():
        return {}
    try:
        data = json.loads(body)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise BodyParseError(400, f"Invalid JSON: {e}") from e
    if not isinstance(data, (dict, list)):
        raise BodyParseError(400, "JSON body must be an object or an array")
    return data


def parse_urlencoded_body(body: bytes) -> dict[str, Any]:
    """Parse a form body, expanding bracketed keys into nested values.

    ``a[b]=1`` becomes ``{"a": {"b": "1"}}``; ``a[]=1&a[]=2`` and
    ``a[0]=1&a[1]=2`` both become ``{"a": ["1", "2"]}``. Repeated plain keys
    collect into a list.
    """
    try:
        text = body.decode("utf-8")
    except UnicodeDecodeError as e:
        raise BodyParseError(400, f"Invalid form body: {e}") from e

    result: dict[str, Any] = {}
    for key, value in parse_qsl(text, keep_blank_values=True):
        _assign(result, _split_key(key), value)
    return {key: _compact(value) for key, value in result.items()}


def _split_key(key: str) -> list[str]:
    match = _KEY_RE.match(key)
    if not match:
        return [key]
    return [match.group(1), *_SEGMENT_RE.findall(match.group(2))]


def _assign(target: dict[str, Any], parts: list[str], value: str) -> None:
    key, rest = parts[0], parts[1:]

    if not rest:
        if key not in target:
            target[key] = value
        elif isinstance(target[key], list):
            target[key].append(value)
        else:
            target[key] = [target[key], value]
        return

    if rest[0] == "":
        items = target.get(key)
        if not isinstance(items, list):
            items = target[key] = [] if items is None else [items]
        if len(rest) == 1:
            items.append(value)
        else:
            child: dict[str, Any] = {}
            items.append(child)
            _assign(child, rest[1:], value)
        return

    child = target.get(key)
    if not isinstance(child, dict):
        child = target[key] = {}
    _assign(child, rest, value)


def _is_index(key: str) -> bool:
    return key.isdigit() and int(key) <= ARRAY_INDEX_LIMIT


def _compact(value: Any) -> Any:
    """Turn mappings keyed only by small indexes into lists, in index order."""
    if isinstance(value, list):
        return [_compact(v) for v in value]
    if not isinstance(value, dict):
        return value
    if value and all(_is_index(k) for k in value):
        return [_compact(value[k]) for k in sorted(value, key=int)]
    return {k: _compact(v) for k, v in value.items()}


class BodyParserMiddleware:
    """Parse JSON and urlencoded bodies into ``request.state.body``.

    The body is read at most ``limit`` bytes past what has been received, then
    replayed to the wrapped app so handlers can still read it.
    """

    def __init__(self, app: ASGIApp, limit: int = DEFAULT_BODY_LIMIT) -> None:
        self.app = app
        self.limit = limit

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        state = scope.setdefault("state", {})
        state["body"] = None

        headers = Headers(scope=scope)
        media_type = headers.get("content-type", "").split(";")[0].strip().lower()
        if media_type in JSON_TYPES:
            parse = parse_json_body
        elif media_type in FORM_TYPES:
            parse = parse_urlencoded_body
        else:
            await self.app(scope, receive, send)
            return

        try:
            body = await read_limited(receive, headers, self.limit)
            state["body"] = parse(body)
        except BodyParseError as e:
            logger.debug(f"Rejecting {scope['method']} {scope['path']}: {e.detail}")
            response = JSONResponse({"detail": e.detail}, status_code=e.status_code)
            await response(scope, receive, send)
            return

        replayed = False

        async def replay() -> Message:
            nonlocal replayed
            if not replayed:
                replayed = True
                return {"type": "http.request", "body": body, "more_body": False}
            return await receive()

        await self.app(scope, replay, send)


def create_app(static_dir: str | Path = "client", body_limit: int = DEFAULT_BODY_LIMIT) -> FastAPI:
    """Create the web application.

    Args:
        static_dir: Directory of client files served at ``/``
        body_limit: Largest accepted JSON or form body, in bytes

    Returns:
        FastAPI application
    """
    app = FastAPI(
        title="Absolute",
        version=__version__,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.add_middleware(BodyParserMiddleware, limit=body_limit)

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "service": "absolute"}

    # Mounted last so it does not shadow the routes above
    app.mount("/", StaticFiles(directory=str(static_dir), html=True), name="static")

    return app

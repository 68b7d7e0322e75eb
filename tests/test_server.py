"""Tests for the web application and its servers."""

import asyncio
import json
from unittest.mock import MagicMock, patch

import pytest
from fastapi import Request
from fastapi.testclient import TestClient

from absolute_tools.config import Config, ServerSettings
from absolute_tools.server.app import create_app, parse_urlencoded_body
from absolute_tools.server.https_server import build_server, run
from absolute_tools.server.main import serve, serve_all
from absolute_tools.server.redirect_server import (
    build_server_for_https,
    create_redirect_app,
    run_for_https,
)


@pytest.fixture
def client_dir(tmp_path):
    """A static client directory."""
    (tmp_path / "index.html").write_text("<h1>Absolute</h1>")
    (tmp_path / "js").mkdir()
    (tmp_path / "js" / "app.js").write_text("console.log('absolute');")
    return tmp_path


@pytest.fixture
def app_client(client_dir):
    """Test client for an app with an extra route that echoes the parsed body."""
    app = create_app(client_dir, body_limit=1024)

    async def echo(request: Request):
        return {"body": request.state.body}

    app.add_api_route("/echo", echo, methods=["POST"])
    # Ahead of the static mount, which matches every path
    app.router.routes.insert(0, app.router.routes.pop())
    return TestClient(app)


class TestStaticFiles:
    """Tests for serving the client directory."""

    def test_serves_index(self, app_client):
        response = app_client.get("/")

        assert response.status_code == 200
        assert "Absolute" in response.text

    def test_serves_nested_file(self, app_client):
        response = app_client.get("/js/app.js")

        assert response.status_code == 200
        assert "console.log" in response.text

    def test_missing_file(self, app_client):
        assert app_client.get("/nope.html").status_code == 404

    def test_health(self, app_client):
        assert app_client.get("/health").json()["status"] == "healthy"


class TestBodyParsing:
    """Tests for JSON and urlencoded body parsing."""

    def test_json_body(self, app_client):
        response = app_client.post("/echo", json={"name": "absolute", "tags": [1, 2]})

        assert response.json() == {"body": {"name": "absolute", "tags": [1, 2]}}

    def test_json_with_charset(self, app_client):
        response = app_client.post(
            "/echo",
            content=b'{"a": 1}',
            headers={"Content-Type": "application/json; charset=utf-8"},
        )

        assert response.json() == {"body": {"a": 1}}

    def test_empty_json_body(self, app_client):
        response = app_client.post(
            "/echo", content=b"", headers={"Content-Type": "application/json"}
        )

        assert response.json() == {"body": {}}

    def test_malformed_json(self, app_client):
        response = app_client.post(
            "/echo", content=b"{not json", headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 400

    def test_json_scalar_rejected(self, app_client):
        response = app_client.post(
            "/echo", content=b'"text"', headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 400

    def test_form_body(self, app_client):
        response = app_client.post("/echo", data={"user": "ada", "lang": "en"})

        assert response.json() == {"body": {"user": "ada", "lang": "en"}}

    def test_body_over_limit(self, app_client):
        response = app_client.post("/echo", json={"blob": "x" * 2048})

        assert response.status_code == 413

    def test_form_over_limit(self, app_client):
        response = app_client.post("/echo", data={"blob": "x" * 2048})

        assert response.status_code == 413

    def test_other_content_types_untouched(self, app_client):
        response = app_client.post(
            "/echo", content=b"plain", headers={"Content-Type": "text/plain"}
        )

        assert response.json() == {"body": None}

    def test_json_suffix_types_untouched(self, app_client):
        response = app_client.post(
            "/echo",
            content=b'{"a": 1}',
            headers={"Content-Type": "application/vnd.api+json"},
        )

        assert response.json() == {"body": None}


async def _call_asgi(app, scope: dict, chunks: list[bytes]) -> tuple[list[dict], int]:
    """Drive an ASGI app with a streamed body; return sent messages and chunks read."""
    pulled = 0
    sent: list[dict] = []

    async def receive() -> dict:
        nonlocal pulled
        if pulled < len(chunks):
            pulled += 1
            return {
                "type": "http.request",
                "body": chunks[pulled - 1],
                "more_body": pulled < len(chunks),
            }
        return {"type": "http.disconnect"}

    async def send(message: dict) -> None:
        sent.append(message)

    await app(scope, receive, send)
    return sent, pulled


def _http_scope(path: str, content_type: bytes) -> dict:
    return {
        "type": "http",
        "asgi": {"version": "3.0"},
        "http_version": "1.1",
        "method": "POST",
        "scheme": "http",
        "path": path,
        "raw_path": path.encode(),
        "root_path": "",
        "query_string": b"",
        "headers": [(b"host", b"testserver"), (b"content-type", content_type)],
        "client": ("127.0.0.1", 50000),
        "server": ("testserver", 80),
    }


class TestStreamedBodies:
    """Tests for bodies sent without a Content-Length."""

    @pytest.mark.asyncio
    async def test_stops_reading_past_limit(self, client_dir):
        app = create_app(client_dir, body_limit=1024)
        chunks = [b"x" * 1024] * 200

        sent, pulled = await _call_asgi(
            app, _http_scope("/echo", b"application/json"), chunks
        )

        assert sent[0]["type"] == "http.response.start"
        assert sent[0]["status"] == 413
        assert pulled == 2

    @pytest.mark.asyncio
    async def test_chunked_body_within_limit(self, client_dir):
        app = create_app(client_dir, body_limit=1024)

        async def echo(request: Request):
            return {"body": request.state.body, "raw": (await request.body()).decode()}

        app.add_api_route("/echo", echo, methods=["POST"])
        app.router.routes.insert(0, app.router.routes.pop())

        sent, pulled = await _call_asgi(
            app, _http_scope("/echo", b"application/json"), [b'{"a": ', b"1}"]
        )

        assert sent[0]["status"] == 200
        body = b"".join(m.get("body", b"") for m in sent if m["type"] == "http.response.body")
        assert json.loads(body) == {"body": {"a": 1}, "raw": '{"a": 1}'}
        assert pulled == 2


class TestUrlencodedParsing:
    """Tests for extended form key parsing."""

    def test_nested_keys(self):
        assert parse_urlencoded_body(b"user[name]=ada&user[lang]=en") == {
            "user": {"name": "ada", "lang": "en"}
        }

    def test_array_keys(self):
        assert parse_urlencoded_body(b"ids[]=1&ids[]=2") == {"ids": ["1", "2"]}

    def test_repeated_plain_keys(self):
        assert parse_urlencoded_body(b"a=1&a=2&a=3") == {"a": ["1", "2", "3"]}

    def test_deep_nesting(self):
        assert parse_urlencoded_body(b"a[b][c]=d") == {"a": {"b": {"c": "d"}}}

    def test_array_of_objects(self):
        assert parse_urlencoded_body(b"items[][name]=x") == {"items": [{"name": "x"}]}

    def test_blank_values_and_encoding(self):
        assert parse_urlencoded_body(b"q=&name=a%20b+c") == {"q": "", "name": "a b c"}

    def test_indexed_keys_become_list(self):
        assert parse_urlencoded_body(b"a[0]=x&a[1]=y") == {"a": ["x", "y"]}

    def test_indexes_sorted_and_compacted(self):
        assert parse_urlencoded_body(b"a[5]=late&a[1]=early") == {"a": ["early", "late"]}

    def test_indexed_objects(self):
        assert parse_urlencoded_body(b"rows[0][id]=1&rows[1][id]=2") == {
            "rows": [{"id": "1"}, {"id": "2"}]
        }

    def test_large_index_stays_mapping(self):
        assert parse_urlencoded_body(b"a[21]=x") == {"a": {"21": "x"}}

    def test_unbalanced_brackets_are_literal(self):
        assert parse_urlencoded_body(b"a[b=1") == {"a[b": "1"}


class TestRedirectServer:
    """Tests for the HTTP to HTTPS redirect."""

    def test_redirects_to_request_host(self):
        client = TestClient(create_redirect_app(ServerSettings()), base_url="http://absolute.dev")
        response = client.get("/play?game=42", follow_redirects=False)

        assert response.status_code == 301
        assert response.headers["location"] == "https://absolute.dev/play?game=42"

    def test_configured_hostname_and_port(self):
        info = ServerSettings(hostname="example.com", https_port=8443)
        client = TestClient(create_redirect_app(info))
        response = client.post("/api/save", follow_redirects=False)

        assert response.status_code == 301
        assert response.headers["location"] == "https://example.com:8443/api/save"

    def test_root(self):
        info = ServerSettings(hostname="example.com")
        response = TestClient(create_redirect_app(info)).get("/", follow_redirects=False)

        assert response.headers["location"] == "https://example.com/"


class TestServers:
    """Tests for building and running the servers."""

    def test_https_server_config(self, client_dir):
        info = ServerSettings(https_port=8443, certfile="cert.pem", keyfile="key.pem")
        server = build_server(create_app(client_dir), info)

        assert server.config.port == 8443
        assert server.config.ssl_certfile == "cert.pem"
        assert server.config.ssl_keyfile == "key.pem"

    def test_https_server_requires_certificate(self, client_dir):
        with pytest.raises(ValueError, match="certfile"):
            build_server(create_app(client_dir), ServerSettings())

    def test_redirect_server_config(self):
        server = build_server_for_https(ServerSettings(http_port=8080))

        assert server.config.port == 8080
        assert server.config.ssl_certfile is None

    def test_run_starts_https_server(self, client_dir):
        info = ServerSettings(https_port=8443, certfile="cert.pem", keyfile="key.pem")
        app = create_app(client_dir)

        with patch("absolute_tools.server.https_server.uvicorn.Server.run", autospec=True) as mock_run:
            run(app, info)

        mock_run.assert_called_once()
        server = mock_run.call_args.args[0]
        assert server.config.app is app
        assert server.config.port == 8443
        assert server.config.ssl_keyfile == "key.pem"

    def test_run_for_https_starts_redirect_server(self):
        info = ServerSettings(http_port=8080, https_port=8443, hostname="example.com")

        with patch(
            "absolute_tools.server.redirect_server.uvicorn.Server.run", autospec=True
        ) as mock_run:
            run_for_https(info)

        mock_run.assert_called_once()
        server = mock_run.call_args.args[0]
        assert server.config.port == 8080
        assert server.config.ssl_certfile is None

        response = TestClient(server.config.app).get("/x", follow_redirects=False)
        assert response.headers["location"] == "https://example.com:8443/x"

    def test_serve_builds_app_once_and_starts_both(self, client_dir):
        config = Config(
            server=ServerSettings(certfile="c.pem", keyfile="k.pem", static_dir=str(client_dir))
        )

        with (
            patch("absolute_tools.server.main.create_app") as mock_app,
            patch("absolute_tools.server.main.build_server") as mock_https,
            patch("absolute_tools.server.main.build_server_for_https") as mock_redirect,
            patch("absolute_tools.server.main.serve_all", new=MagicMock()) as mock_serve_all,
            patch("absolute_tools.server.main.asyncio.run") as mock_run,
        ):
            serve(config)

        mock_app.assert_called_once_with(str(client_dir), body_limit=config.server.body_limit)
        mock_https.assert_called_once_with(mock_app.return_value, config.server)
        mock_redirect.assert_called_once_with(config.server)
        mock_serve_all.assert_called_once_with(
            [mock_https.return_value, mock_redirect.return_value]
        )
        mock_run.assert_called_once_with(mock_serve_all.return_value)


class FakeServer:
    """Stands in for uvicorn.Server."""

    def __init__(self, stop_after: float | None = None) -> None:
        self.should_exit = False
        self.stop_after = stop_after

    async def serve(self) -> None:
        if self.stop_after is not None:
            await asyncio.sleep(self.stop_after)
            return
        while not self.should_exit:
            await asyncio.sleep(0.01)


class TestServeAll:
    """Tests for running the servers together."""

    @pytest.mark.asyncio
    async def test_stops_remaining_servers(self):
        https, redirect = FakeServer(), FakeServer(stop_after=0.01)

        await asyncio.wait_for(serve_all([https, redirect]), timeout=2)

        assert https.should_exit
        assert redirect.should_exit

    @pytest.mark.asyncio
    async def test_propagates_startup_failure(self):
        class BrokenServer(FakeServer):
            async def serve(self) -> None:
                raise OSError("address already in use")

        with pytest.raises(OSError, match="address already in use"):
            await asyncio.wait_for(serve_all([FakeServer(), BrokenServer()]), timeout=2)

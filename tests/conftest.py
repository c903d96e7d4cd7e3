"""Pytest configuration and shared fakes.

Adds the repository root to sys.path so tests can `import azopenai_lib`
without installing the package, and provides a `requests.Session` whose
`send` returns canned responses instead of touching the network.
"""

from __future__ import annotations

import http.server
import io
import json
import sys
import threading
from pathlib import Path
from types import SimpleNamespace

import pytest
import requests

_REPO_ROOT = Path(__file__).resolve().parents[1]
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))

from azopenai_lib.utils.auth import Authorizer  # noqa: E402
from azopenai_lib.utils.http import HttpRequester  # noqa: E402


def make_response(status: int, body, raw=None) -> requests.Response:
    if isinstance(body, (dict, list)):
        body = json.dumps(body).encode("utf-8")
    elif isinstance(body, str):
        body = body.encode("utf-8")
    resp = requests.Response()
    resp.status_code = status
    resp.raw = raw if raw is not None else io.BytesIO(body)
    return resp


class FakeSession(requests.Session):
    """Records prepared requests and replies from a list of responses."""

    def __init__(self, *responses):
        super().__init__()
        self.responses = list(responses)
        self.sent = []
        self.bodies = []
        self.kwargs = []
        self.on_send = None

    def send(self, request, **kwargs):
        self.sent.append(request)
        self.kwargs.append(kwargs)
        self.bodies.append(request.body.read())
        if self.on_send is not None:
            self.on_send(request)
        item = self.responses.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item


class BlockingRaw:
    """Raw body that yields `chunks`, then blocks until closed."""

    def __init__(self, chunks=()):
        self._chunks = list(chunks)
        self._closed = threading.Event()

    def read(self, amt=None):
        if self._chunks:
            return self._chunks.pop(0)
        self._closed.wait(10)
        raise ValueError("I/O operation on closed body")

    def close(self):
        self._closed.set()

    @property
    def closed(self):
        return self._closed.is_set()


class FailingRaw:
    """Raw body that yields `chunks`, then fails like a reset socket."""

    def __init__(self, chunks=()):
        self._chunks = list(chunks)

    def read(self, amt=None):
        if self._chunks:
            return self._chunks.pop(0)
        raise ConnectionResetError("connection reset by peer")

    def close(self):
        pass


class StubCredential:
    def __init__(self, token="secret-token", error=None):
        self.token = token
        self.error = error
        self.scopes = []

    def get_token(self, *scopes, **kwargs):
        self.scopes.append(scopes)
        if self.error is not None:
            raise self.error
        return SimpleNamespace(token=self.token, expires_on=0)


@pytest.fixture
def requester_factory():
    def _make(*responses, authorizer=None):
        session = FakeSession(*responses)
        requester = HttpRequester(
            resource_name="test",
            authorizer=authorizer or Authorizer(api_key="key-123"),
            session=session,
            api_version="2023-05-15",
        )
        return requester, session

    return _make


class _SlowHandler(http.server.BaseHTTPRequestHandler):
    """Reads the request, then answers only once the server is released."""

    def do_POST(self):
        self.rfile.read(int(self.headers.get("Content-Length", 0)))
        self.server.release.wait(10)
        body = b'{"late": true}'
        try:
            self.send_response(200)
            self.send_header("Content-Type", "application/json")
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)
        except OSError:
            # the client has gone away
            pass

    def log_message(self, *args):
        pass


@pytest.fixture
def slow_server():
    server = http.server.ThreadingHTTPServer(("127.0.0.1", 0), _SlowHandler)
    server.daemon_threads = True
    server.release = threading.Event()
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    host, port = server.server_address[:2]
    yield f"http://{host}:{port}/openai/deployments/d/chat/completions"
    server.release.set()
    server.shutdown()
    server.server_close()

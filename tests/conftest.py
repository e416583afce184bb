"""
Shared fixtures: a local HTTP server standing in for the mirrored resource.
"""
import socket
import tempfile
import threading
import time
from email.utils import parsedate_to_datetime
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pytest


class RemoteResource:
    """Mutable state served by the fixture server."""

    def __init__(self):
        self.lock = threading.Lock()
        self.body = b""
        self.etag: Optional[str] = None
        self.last_modified: Optional[str] = None
        # Forced status codes, keyed by HTTP method
        self.fail_status: Dict[str, int] = {}
        self.requests: List[Tuple[str, Dict[str, str]]] = []
        self.url = ""

    def set(self, body: bytes, etag: Optional[str] = None, last_modified: Optional[str] = None):
        with self.lock:
            self.body = body
            self.etag = etag
            self.last_modified = last_modified

    def requests_for(self, method: str) -> List[Dict[str, str]]:
        with self.lock:
            return [headers for m, headers in self.requests if m == method]


class _ResourceHandler(BaseHTTPRequestHandler):
    def do_HEAD(self):
        self._respond(include_body=False)

    def do_GET(self):
        self._respond(include_body=True)

    def _is_not_modified(self, etag, last_modified) -> bool:
        if_none_match = self.headers.get("If-None-Match")
        if etag and if_none_match is not None:
            return if_none_match == etag
        if_modified_since = self.headers.get("If-Modified-Since")
        if last_modified and if_modified_since:
            return parsedate_to_datetime(last_modified) <= parsedate_to_datetime(if_modified_since)
        return False

    def _respond(self, include_body: bool):
        resource = self.server.resource
        with resource.lock:
            resource.requests.append((self.command, dict(self.headers)))
            body = resource.body
            etag = resource.etag
            last_modified = resource.last_modified
            fail_status = resource.fail_status.get(self.command)

        if fail_status:
            self.send_response(fail_status)
            self.send_header("Content-Length", "0")
            self.end_headers()
            return

        if self._is_not_modified(etag, last_modified):
            self.send_response(304)
            self.end_headers()
            return

        self.send_response(200)
        if etag:
            self.send_header("ETag", etag)
        if last_modified:
            self.send_header("Last-Modified", last_modified)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        if include_body:
            self.wfile.write(body)

    def log_message(self, format, *args):
        pass


PROXY_ENV_VARS = ("HTTP_PROXY", "HTTPS_PROXY", "ALL_PROXY", "http_proxy", "https_proxy", "all_proxy")


@pytest.fixture(autouse=True)
def no_proxy_env(monkeypatch):
    """Keep localhost fixture traffic off any proxy configured in the environment."""
    for name in PROXY_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def remote():
    """Serve a RemoteResource on an ephemeral localhost port."""
    resource = RemoteResource()
    server = ThreadingHTTPServer(("127.0.0.1", 0), _ResourceHandler)
    server.resource = resource
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    resource.url = f"http://127.0.0.1:{server.server_address[1]}/resource"
    yield resource
    server.shutdown()
    server.server_close()


@pytest.fixture
def unreachable_url():
    """URL on a localhost port nothing is listening on."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        port = sock.getsockname()[1]
    return f"http://127.0.0.1:{port}/resource"


@pytest.fixture
def temp_dir():
    """Create a temporary directory for cache files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


class Recorder:
    """on_update callback that records every payload it accepts."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.payloads: List[bytes] = []
        self.attempts = 0

    def __call__(self, stream):
        data = stream.read()
        self.attempts += 1
        if self.fail:
            raise ValueError("rejected")
        self.payloads.append(data)


@pytest.fixture
def recorder():
    return Recorder()


def wait_for(predicate, timeout: float = 5.0, poll: float = 0.01) -> bool:
    """Poll predicate until it returns True or timeout elapses."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(poll)
    return predicate()

import json
from urllib.parse import urlsplit

import pytest

from spectrum_exporter.connection import Deadline, SpectrumSession


class FakeResponse:
    """
    Streamed response stand-in. chunk_size splits the body into that many
    bytes per chunk and on_chunk runs before each chunk is handed out.
    """

    raw = None

    def __init__(self, status_code=200, body=None, text=None, chunk_size=None, on_chunk=None):
        self.status_code = status_code
        if text is None:
            text = json.dumps(body)
        self.content = text.encode("utf-8")
        self.chunk_size = chunk_size
        self.on_chunk = on_chunk
        self.chunks_read = 0
        self.closed = False

    def iter_content(self, chunk_size=1):
        size = self.chunk_size or max(len(self.content), 1)
        for start in range(0, len(self.content), size):
            self.chunks_read += 1
            if self.on_chunk:
                self.on_chunk()
            yield self.content[start:start + size]

    def close(self):
        self.closed = True


class FakeHTTP:
    """Stands in for requests.Session; routes by URL path and records every POST."""

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.requests = []

    def post(self, url, headers=None, timeout=None, stream=False):
        self.requests.append({"url": url, "headers": dict(headers or {}), "timeout": timeout})
        route = self.routes.get(urlsplit(url).path)
        if route is None:
            return FakeResponse(404, text="not found")
        if isinstance(route, Exception):
            raise route
        if isinstance(route, FakeResponse):
            return route
        return FakeResponse(200, body=route)

    def paths(self):
        return [urlsplit(r["url"]).path for r in self.requests]


class FakeTransport:
    def __init__(self, http):
        self.http = http
        self.sessions = 0

    def session(self):
        self.sessions += 1
        return self.http


@pytest.fixture
def fake_http():
    return FakeHTTP


@pytest.fixture
def fake_response():
    return FakeResponse


@pytest.fixture
def fake_transport():
    return FakeTransport


@pytest.fixture
def make_session():
    def _make(routes, timeout=30.0):
        return SpectrumSession("https://array.example.com", "tok-123", FakeHTTP(routes), Deadline(timeout))
    return _make

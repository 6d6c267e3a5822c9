"""Shared fixtures: a fake GitHub / contributions / Gemini upstream."""

import base64
import json

import httpx
import pytest

GITHUB = "https://api.github.com"
CONTRIB = "https://github-contributions-api.jogruber.de/v4"
GEMINI = "https://generativelanguage.googleapis.com/v1beta/models/gemini-2.5-flash:generateContent"


def encode(text: str) -> str:
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def gemini_body(data) -> dict:
    """Wrap a JSON-able value the way generateContent returns it."""
    text = data if isinstance(data, str) else json.dumps(data)
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


class FakeUpstream:
    """Routes MockTransport requests to canned responses by URL (query ignored).

    Unregistered URLs answer 404.
    """

    def __init__(self):
        self.routes = {}
        self.requests = []

    def add(self, url, *, json=None, status=200, headers=None, text=None, error=None):
        self.routes[url] = {
            "json": json,
            "status": status,
            "headers": headers or {},
            "text": text,
            "error": error,
        }
        return self

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = f"{request.url.scheme}://{request.url.host}{request.url.path}"
        route = self.routes.get(key)
        if route is None:
            return httpx.Response(404, json={"message": "Not Found"})
        if route["error"] is not None:
            raise route["error"](f"fake failure for {key}", request=request)
        if route["text"] is not None:
            return httpx.Response(route["status"], text=route["text"], headers=route["headers"])
        return httpx.Response(route["status"], json=route["json"], headers=route["headers"])

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))

    def requested(self, fragment: str) -> list[httpx.Request]:
        return [r for r in self.requests if fragment in str(r.url)]


@pytest.fixture
def upstream():
    return FakeUpstream()

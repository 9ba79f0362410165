from __future__ import annotations

import io
import json
from typing import Any, Callable

import httpx
import pytest
from PIL import Image

from cli.allscreenshots import state as state_module
from cli.allscreenshots.client import AllscreenshotsClient

Handler = Callable[[httpx.Request], httpx.Response]


def make_png(width: int = 4, height: int = 3, color: tuple[int, int, int] = (200, 30, 30)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buffer, format="PNG")
    return buffer.getvalue()


def json_response(payload: Any, status: int = 200) -> Handler:
    return lambda request: httpx.Response(status, json=payload)


def bytes_response(data: bytes, content_type: str = "image/png") -> Handler:
    return lambda request: httpx.Response(200, content=data, headers={"Content-Type": content_type})


def sequence(*handlers: Handler) -> Handler:
    """Answer with each handler in turn, repeating the last one."""
    remaining = list(handlers)

    def inner(request: httpx.Request) -> httpx.Response:
        handler = remaining.pop(0) if len(remaining) > 1 else remaining[0]
        return handler(request)

    return inner


class FakeApi:
    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.routes: dict[tuple[str, str], Handler] = {}
        self.api_keys: list[str] = []

    def route(self, method: str, path: str, handler: Handler) -> None:
        self.routes[(method, path)] = handler

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get((request.method, request.url.path))
        if handler is None:
            return httpx.Response(404, json={"error": {"message": "no such route", "code": "NOT_FOUND"}})
        return handler(request)

    def client(self, api_key: str) -> AllscreenshotsClient:
        self.api_keys.append(api_key)
        return AllscreenshotsClient(api_key, base_url="https://api.test", transport=httpx.MockTransport(self.handle))

    def bodies(self, path: str) -> list[dict[str, Any]]:
        return [json.loads(request.content) for request in self.requests if request.url.path == path]


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    monkeypatch.setenv("ALLSCREENSHOTS_CONFIG", str(tmp_path / "config" / "config.toml"))
    for name in ("ALLSCREENSHOTS_API_KEY", "ALLSCREENSHOTS_API_URL", "KITTY_WINDOW_ID", "TERM_PROGRAM"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("TERM", "dumb")
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def fake_api(monkeypatch) -> FakeApi:
    api = FakeApi()
    monkeypatch.setattr(state_module, "make_client", api.client)
    return api


@pytest.fixture
def png() -> bytes:
    return make_png()

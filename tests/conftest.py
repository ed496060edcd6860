"""Shared fakes for the fetch pipeline tests."""

from __future__ import annotations

import io
import threading
from typing import Dict, List, Optional, Union

import pytest
import requests
from PIL import Image


class FakeResponse:
    def __init__(self, status_code: int = 200, body: Union[str, bytes] = b"", content_type: str = "") -> None:
        self.status_code = status_code
        self.content = body.encode("utf-8") if isinstance(body, str) else body
        self.headers = {"Content-Type": content_type} if content_type else {}

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")


class FakeSession:
    """Maps URLs to canned responses; unknown URLs are a 404."""

    def __init__(self, routes: Optional[Dict[str, Union[FakeResponse, Exception]]] = None) -> None:
        self.routes = dict(routes or {})
        self.requested: List[str] = []
        self._lock = threading.Lock()

    def get(self, url, timeout=None, **kwargs):
        with self._lock:
            self.requested.append(url)
        route = self.routes.get(url)
        if isinstance(route, Exception):
            raise route
        if route is None:
            return FakeResponse(404, b"not found", "text/plain")
        return route


def make_png(width: int, height: int, color=(200, 30, 30), mode: str = "RGB") -> bytes:
    buffer = io.BytesIO()
    Image.new(mode, (width, height), color).save(buffer, format="PNG")
    return buffer.getvalue()


def make_gif(width: int, height: int, frames: int = 3) -> bytes:
    palette = [(255, 0, 0), (0, 255, 0), (0, 0, 255), (255, 255, 0)]
    images = [Image.new("RGB", (width, height), palette[i % len(palette)]) for i in range(frames)]
    buffer = io.BytesIO()
    images[0].save(buffer, format="GIF", save_all=frames > 1, append_images=images[1:], duration=100, loop=0)
    return buffer.getvalue()


@pytest.fixture
def connection_error() -> Exception:
    return requests.ConnectionError("connection refused")

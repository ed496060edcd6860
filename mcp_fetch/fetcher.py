"""HTTP retrieval of the primary page."""

from __future__ import annotations

import logging
from typing import Optional

import requests

from .models import FetchedResource

logger = logging.getLogger("mcp_fetch")


class FetchError(RuntimeError):
    """Fatal failure while retrieving the requested page."""


class HTTPStatusError(FetchError):
    """The server answered with a non-2xx status."""

    def __init__(self, url: str, status_code: int) -> None:
        super().__init__(f"Failed to fetch {url} - status code {status_code}")
        self.url = url
        self.status_code = status_code


def create_session(user_agent: str, proxy_url: Optional[str] = None) -> requests.Session:
    """Build a session identifying as ``user_agent``, optionally through a proxy."""
    session = requests.Session()
    session.headers.update({"User-Agent": user_agent})
    if proxy_url:
        session.proxies.update({"http": proxy_url, "https": proxy_url})
        logger.debug("Routing requests through proxy %s", proxy_url)
    return session


def is_html_response(content_type: str, text: str) -> bool:
    """Servers mislabel content, so either the header or an <html> tag counts."""
    return "text/html" in (content_type or "").lower() or "<html" in text.lower()


def fetch_resource(session: requests.Session, url: str, timeout: float = 30.0) -> FetchedResource:
    """GET ``url`` once and classify the body as HTML or raw content."""
    logger.info("Fetching %s", url)
    try:
        resp = session.get(url, timeout=timeout)
    except requests.RequestException as exc:
        raise FetchError(f"Failed to fetch {url}: {exc}") from exc

    if not 200 <= resp.status_code < 300:
        raise HTTPStatusError(url, resp.status_code)

    content_type = resp.headers.get("Content-Type", "")
    text = resp.text
    return FetchedResource(
        url=url,
        text=text,
        content_type=content_type,
        status_code=resp.status_code,
        is_html=is_html_response(content_type, text),
    )

"""robots.txt gate run before the primary page retrieval."""

from __future__ import annotations

import logging
from urllib import robotparser
from urllib.parse import urlparse, urlunsplit

import requests

from .fetcher import FetchError

logger = logging.getLogger("mcp_fetch")


class RobotsDisallowedError(FetchError):
    """The site's crawl policy forbids fetching the target URL."""


def robots_url_for(url: str) -> str:
    parsed = urlparse(url)
    return urlunsplit((parsed.scheme, parsed.netloc, "/robots.txt", "", ""))


def check_robots_txt(
    session: requests.Session,
    url: str,
    user_agent: str,
    timeout: float = 30.0,
) -> None:
    """Raise ``RobotsDisallowedError`` unless ``user_agent`` may fetch ``url``.

    An auth failure on robots.txt itself (401/403) denies. Any other reason
    the policy cannot be read, including a 404 or a network error, allows.
    """
    robots_url = robots_url_for(url)
    try:
        resp = session.get(robots_url, timeout=timeout)
    except requests.RequestException as exc:
        logger.debug("robots.txt unavailable at %s (%s); allowing", robots_url, exc)
        return

    if resp.status_code in (401, 403):
        raise RobotsDisallowedError(
            f"When fetching robots.txt ({robots_url}), received status {resp.status_code} "
            "so assuming that autonomous fetching is not allowed."
        )
    if not 200 <= resp.status_code < 300:
        logger.debug("robots.txt at %s returned %d; allowing", robots_url, resp.status_code)
        return

    parser = robotparser.RobotFileParser()
    parser.set_url(robots_url)
    parser.parse(resp.text.splitlines())
    if not parser.can_fetch(user_agent, url):
        raise RobotsDisallowedError(
            f"The site's robots.txt ({robots_url}) specifies that autonomous fetching of this page "
            f"is not allowed for user agent {user_agent!r}."
        )

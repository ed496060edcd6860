"""Configuration objects and constants for the fetch server."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional

DEFAULT_USER_AGENT_AUTONOMOUS = (
    "ModelContextProtocol/1.0 (Autonomous; +https://github.com/modelcontextprotocol/servers)"
)

DEFAULT_MAX_LENGTH = 20_000
MAX_LENGTH_LIMIT = 1_000_000

MAX_IMAGES_PER_GROUP = 6
MAX_GROUP_HEIGHT = 8000
MAX_GROUP_BYTES = 30 * 1024 * 1024

PROXY_ENV_VAR = "MCP_FETCH_PROXY"


@dataclass(frozen=True)
class BatchLimits:
    """Bounds applied to every composite image group."""

    max_images_per_group: int = MAX_IMAGES_PER_GROUP
    max_group_height: int = MAX_GROUP_HEIGHT
    max_group_bytes: int = MAX_GROUP_BYTES


@dataclass(frozen=True)
class ClipboardTiming:
    """Settling delays around each copy and paste step, in seconds."""

    copy_settle_seconds: float = 0.5
    paste_settle_seconds: float = 1.0


@dataclass(frozen=True)
class ServerSettings:
    """Top-level settings that control fetching and image publishing."""

    user_agent: str = DEFAULT_USER_AGENT_AUTONOMOUS
    proxy_url: Optional[str] = None
    ignore_robots_txt: bool = False
    publish_images: bool = True
    request_timeout: float = 30.0
    image_timeout: float = 15.0
    image_workers: int = 4
    limits: BatchLimits = field(default_factory=BatchLimits)
    timing: ClipboardTiming = field(default_factory=ClipboardTiming)


def resolve_proxy_url(explicit: Optional[str] = None) -> Optional[str]:
    """Return the proxy override, preferring an explicit value over the environment."""
    if explicit and explicit.strip():
        return explicit.strip()
    override = os.getenv(PROXY_ENV_VAR, "").strip()
    return override or None

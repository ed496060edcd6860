"""Image downloading and normalization utilities."""

from __future__ import annotations

import io
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from typing import Dict, List, Optional, Sequence, Tuple
from urllib.parse import urlparse

import requests
from filetype import guess
from PIL import Image, UnidentifiedImageError

from .models import ContentImage

logger = logging.getLogger("mcp_fetch")


def detect_image_format(data: bytes) -> Optional[str]:
    """Detect image type using filetype; returns lowercase extension."""
    kind = guess(data)
    if kind and kind.mime.startswith("image/"):
        ext = kind.extension.lower()
        if ext == "jpeg":
            return "jpg"
        return ext
    return None


def infer_image_extension(content_type: Optional[str], data: bytes) -> Optional[str]:
    """Guess an image file extension from HTTP metadata or file signature."""
    detected = detect_image_format(data)
    if detected:
        return detected
    if not content_type:
        return None
    parts = content_type.split(";")[0].split("/")
    if len(parts) == 2 and parts[0] == "image":
        ext = parts[1].strip().lower()
        if ext == "jpeg":
            ext = "jpg"
        return ext
    return None


def is_gif(url: str, content_type: Optional[str], data: bytes) -> bool:
    if urlparse(url).path.lower().endswith(".gif"):
        return True
    return infer_image_extension(content_type, data) == "gif"


def first_frame(data: bytes) -> bytes:
    """Reduce an animated GIF to its first frame as PNG.

    Single-frame GIFs and anything Pillow cannot read are returned unchanged.
    """
    try:
        with Image.open(io.BytesIO(data)) as image:
            frames = getattr(image, "n_frames", 1)
            if frames <= 1:
                return data
            image.seek(0)
            still = image.convert("RGBA")
    except (OSError, ValueError, EOFError, SyntaxError, Image.DecompressionBombError) as exc:
        logger.debug("Could not read GIF frames (%s); keeping original bytes", exc)
        return data

    buffer = io.BytesIO()
    still.save(buffer, format="PNG")
    logger.debug("Reduced animated GIF with %d frames to a single PNG frame", frames)
    return buffer.getvalue()


def read_dimensions(data: bytes) -> Tuple[int, int]:
    with Image.open(io.BytesIO(data)) as image:
        image.load()
        return image.size


def _download(session: requests.Session, url: str, timeout: float) -> Optional[Tuple[bytes, str]]:
    try:
        resp = session.get(url, timeout=timeout)
    except requests.RequestException as exc:
        logger.warning("Failed to fetch image %s: %s", url, exc)
        return None
    if not 200 <= resp.status_code < 300:
        logger.warning("Failed to fetch image %s: status code %d", url, resp.status_code)
        return None
    return resp.content, resp.headers.get("Content-Type", "")


def fetch_image(session: requests.Session, image: ContentImage, timeout: float = 15.0) -> Optional[ContentImage]:
    """Download one image and populate its bytes and dimensions, or ``None``."""
    downloaded = _download(session, image.source_url, timeout)
    if downloaded is None:
        return None
    data, content_type = downloaded

    if is_gif(image.source_url, content_type, data):
        data = first_frame(data)

    try:
        width, height = read_dimensions(data)
    except (OSError, ValueError, UnidentifiedImageError, Image.DecompressionBombError) as exc:
        logger.warning(
            "Skipping %s: unreadable image (Content-Type=%s): %s",
            image.source_url,
            content_type,
            exc,
        )
        return None

    return replace(image, data=data, width=width, height=height, byte_size=len(data))


def acquire_images(
    session: requests.Session,
    images: Sequence[ContentImage],
    timeout: float = 15.0,
    max_workers: int = 4,
) -> List[ContentImage]:
    """Download every article image, skipping failures, in document order."""
    if not images:
        return []

    unique: Dict[str, ContentImage] = {}
    for image in images:
        unique.setdefault(image.source_url, image)

    with ThreadPoolExecutor(max_workers=max(1, max_workers)) as executor:
        results = list(
            executor.map(lambda candidate: fetch_image(session, candidate, timeout), unique.values())
        )
    fetched = dict(zip(unique.keys(), results))

    acquired: List[ContentImage] = []
    for image in images:
        result = fetched[image.source_url]
        if result is None:
            continue
        acquired.append(replace(result, alt_text=image.alt_text))

    logger.info("Acquired %d of %d image(s)", len(acquired), len(images))
    return acquired

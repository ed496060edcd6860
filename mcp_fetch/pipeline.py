"""High-level orchestration of a single fetch invocation."""

from __future__ import annotations

import logging
import time
from typing import Optional, Union

import requests
from PIL import Image

from .clipboard import ClipboardPublisher
from .compositor import build_composites
from .config import ServerSettings, resolve_proxy_url
from .content import extract_article
from .fetcher import FetchError, create_session, fetch_resource
from .images import acquire_images
from .models import ExtractionFailed, FetchFailure, FetchRequest, FetchResult, PublishReport
from .response import image_note, raw_content_note
from .robots import check_robots_txt

logger = logging.getLogger("mcp_fetch")


def process_page(
    request: FetchRequest,
    settings: ServerSettings,
    session: requests.Session,
    publisher: ClipboardPublisher,
) -> FetchResult:
    """Run the stages after the robots gate; fatal failures raise ``FetchError``."""
    resource = fetch_resource(session, request.url, timeout=settings.request_timeout)

    if not resource.is_html or request.raw:
        return FetchResult(
            rendered_content=resource.text,
            prefix_note=raw_content_note(resource.content_type),
        )

    extracted = extract_article(resource.text, resource.url)
    if isinstance(extracted, ExtractionFailed):
        return FetchResult(rendered_content=extracted.marker)

    image_urls = tuple(image.source_url for image in extracted.images)
    if not extracted.images or not settings.publish_images:
        return FetchResult(rendered_content=extracted.markdown, image_source_urls=image_urls)

    acquired = acquire_images(
        session,
        extracted.images,
        timeout=settings.image_timeout,
        max_workers=settings.image_workers,
    )
    if not acquired:
        return FetchResult(rendered_content=extracted.markdown, image_source_urls=image_urls)

    try:
        composites = build_composites(acquired, settings.limits)
    except (OSError, ValueError, Image.DecompressionBombError) as exc:
        logger.error("Could not composite images for %s: %s", request.url, exc)
        report = PublishReport(
            image_count=len(acquired),
            batch_count=0,
            error=f"could not composite images: {exc}",
        )
    else:
        report = publisher.publish(composites)
    return FetchResult(
        rendered_content=extracted.markdown,
        prefix_note=image_note(report),
        image_source_urls=image_urls,
    )


def run_fetch(
    request: FetchRequest,
    settings: ServerSettings,
    session: Optional[requests.Session] = None,
    publisher: Optional[ClipboardPublisher] = None,
) -> Union[FetchResult, FetchFailure]:
    """Fetch ``request.url`` end to end; never raises for expected failures."""
    start = time.perf_counter()
    if session is None:
        session = create_session(settings.user_agent, resolve_proxy_url(settings.proxy_url))
    if publisher is None:
        publisher = ClipboardPublisher(timing=settings.timing)

    try:
        if not settings.ignore_robots_txt:
            check_robots_txt(session, request.url, settings.user_agent, timeout=settings.request_timeout)
        result = process_page(request, settings, session, publisher)
    except FetchError as exc:
        logger.error("%s", exc)
        return FetchFailure(str(exc))
    except requests.RequestException as exc:
        logger.error("Failed to fetch %s: %s", request.url, exc)
        return FetchFailure(f"Failed to fetch {request.url}: {exc}")

    logger.info("Fetched %s in %.2fs", request.url, time.perf_counter() - start)
    return result

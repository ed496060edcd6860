"""Readable article extraction and image discovery."""

from __future__ import annotations

import logging
from typing import Iterable, List, Tuple, Union
from urllib.parse import urljoin

from bs4 import BeautifulSoup
from readability import Document
from readability.readability import Unparseable

from .markdown import render_markdown
from .models import ContentImage, ExtractedArticle, ExtractionFailed

logger = logging.getLogger("mcp_fetch")

_MIN_PLAINTEXT_CHARS = 200


def _clean_content(soup: BeautifulSoup, strip_chrome: bool = False) -> BeautifulSoup:
    """Remove noisy tags while keeping relevant article markup."""
    for tag in soup(["script", "style", "noscript", "form"]):
        tag.decompose()
    if strip_chrome:
        for tag in soup(["header", "footer", "nav", "aside"]):
            tag.decompose()
    return soup


def _join_plain_text(soup: BeautifulSoup) -> str:
    return "\n".join(s for s in soup.stripped_strings)


def _iter_primary_candidates(soup_full: BeautifulSoup) -> Iterable[BeautifulSoup]:
    """Yield progressively broader content scopes to fall back on."""
    for selector in ("main", "article"):
        candidate = soup_full.select_one(selector)
        if candidate:
            yield BeautifulSoup(str(candidate), "html.parser")
    if soup_full.body:
        yield BeautifulSoup(str(soup_full.body), "html.parser")


def isolate_content(html: str, base_url: str) -> Tuple[str, str]:
    """Return the readable subtree as HTML together with its plain text.

    A broader scope replaces the readability summary only when the summary
    has neither enough text nor any image of its own.
    """
    document = Document(html, url=base_url)
    summary = BeautifulSoup(document.summary(html_partial=True), "html.parser")
    summary = _clean_content(summary)
    plain_text = _join_plain_text(summary)

    if len(plain_text) < _MIN_PLAINTEXT_CHARS and not summary.find("img"):
        soup_full = BeautifulSoup(html, "html.parser")
        for candidate in _iter_primary_candidates(soup_full):
            candidate = _clean_content(candidate, strip_chrome=True)
            candidate_plain = _join_plain_text(candidate)
            if len(candidate_plain) > len(plain_text):
                logger.debug("Readability summary too thin for %s; using a broader scope", base_url)
                summary = candidate
                plain_text = candidate_plain
                break

    return summary.decode(), plain_text


def find_images(content_html: str, base_url: str) -> List[ContentImage]:
    """List the images of an extracted subtree in document order."""
    soup = BeautifulSoup(content_html, "html.parser")
    images: List[ContentImage] = []
    for img in soup.find_all("img"):
        src = (img.get("src") or "").strip()
        if not src or src.startswith("data:"):
            continue
        alt_text = (img.get("alt") or "").strip()
        images.append(ContentImage(source_url=urljoin(base_url, src), alt_text=alt_text))
    return images


def extract_article(html: str, base_url: str) -> Union[ExtractedArticle, ExtractionFailed]:
    """Extract readable markdown and its images, or the failure marker."""
    if not html.strip():
        return ExtractionFailed()
    try:
        content_html, plain_text = isolate_content(html, base_url)
    except Unparseable as exc:
        logger.warning("Readability could not parse %s: %s", base_url, exc)
        return ExtractionFailed()

    images = find_images(content_html, base_url)
    if not plain_text.strip() and not images:
        logger.info("No readable content found in %s", base_url)
        return ExtractionFailed()

    return ExtractedArticle(markdown=render_markdown(content_html), images=images)

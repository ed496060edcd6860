"""Data models used throughout the fetch pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple
from urllib.parse import urlparse

from .config import DEFAULT_MAX_LENGTH, MAX_LENGTH_LIMIT


@dataclass(frozen=True)
class FetchRequest:
    """Validated arguments of a single ``fetch`` tool call."""

    url: str
    max_length: int = DEFAULT_MAX_LENGTH
    start_index: int = 0
    raw: bool = False

    def __post_init__(self) -> None:
        parsed = urlparse(self.url) if isinstance(self.url, str) else None
        if not parsed or parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"Invalid arguments: url must be an absolute http(s) URL, got {self.url!r}")
        if isinstance(self.max_length, bool) or not isinstance(self.max_length, int):
            raise ValueError("Invalid arguments: maxLength must be an integer")
        if not 0 < self.max_length <= MAX_LENGTH_LIMIT:
            raise ValueError(
                f"Invalid arguments: maxLength must be between 1 and {MAX_LENGTH_LIMIT}, got {self.max_length}"
            )
        if isinstance(self.start_index, bool) or not isinstance(self.start_index, int):
            raise ValueError("Invalid arguments: startIndex must be an integer")
        if self.start_index < 0:
            raise ValueError(f"Invalid arguments: startIndex must be non-negative, got {self.start_index}")
        if not isinstance(self.raw, bool):
            raise ValueError("Invalid arguments: raw must be a boolean")


@dataclass
class FetchedResource:
    """Body of the primary page retrieval and its classification."""

    url: str
    text: str
    content_type: str
    status_code: int
    is_html: bool


@dataclass
class ContentImage:
    """Image referenced by the extracted article, populated once downloaded."""

    source_url: str
    alt_text: str = ""
    data: Optional[bytes] = None
    width: int = 0
    height: int = 0
    byte_size: int = 0


@dataclass
class ExtractedArticle:
    """Markdown rendering of the readable content plus its images."""

    markdown: str
    images: List[ContentImage]


@dataclass(frozen=True)
class ExtractionFailed:
    """Marker returned when no readable content survives extraction."""

    marker: str = "<e>Page failed to be simplified from HTML</e>"


@dataclass
class ImageGroup:
    """Ordered run of images destined for one composite, with running totals."""

    images: List[ContentImage] = field(default_factory=list)
    height: int = 0
    byte_size: int = 0

    @property
    def count(self) -> int:
        return len(self.images)

    def add(self, image: ContentImage) -> None:
        self.images.append(image)
        self.height += image.height
        self.byte_size += image.byte_size


@dataclass
class CompositeImage:
    """PNG rendering of an image group stacked top to bottom."""

    data: bytes
    width: int
    height: int
    image_count: int


@dataclass
class PublishReport:
    """Outcome of pushing composites onto the clipboard."""

    image_count: int
    batch_count: int
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class FetchResult:
    """Terminal output of a successful pipeline run."""

    rendered_content: str
    prefix_note: str = ""
    image_source_urls: Tuple[str, ...] = ()


@dataclass(frozen=True)
class FetchFailure:
    """Terminal output of a failed pipeline run."""

    message: str


@dataclass(frozen=True)
class ToolResponse:
    """Text payload handed back to the tool transport."""

    text: str
    is_error: bool = False

"""Assembly of the final tool payload."""

from __future__ import annotations

from typing import Union

from .models import FetchFailure, FetchRequest, FetchResult, PublishReport, ToolResponse


def raw_content_note(content_type: str) -> str:
    return f"Content type {content_type} cannot be simplified to markdown, but here is the raw content:\n"


def image_note(report: PublishReport) -> str:
    """Describe the clipboard outcome for the response prefix."""
    if not report.image_count:
        return ""
    if report.error:
        return (
            f"Found and processed {report.image_count} images, but they could not be added "
            f"to your clipboard: {report.error}\n"
        )
    batches = "batch" if report.batch_count == 1 else "batches"
    return (
        f"Found and processed {report.image_count} images. They have been added to your "
        f"clipboard in {report.batch_count} {batches}.\n"
    )


def truncate_content(content: str, start_index: int, max_length: int) -> str:
    """Cut ``content`` to the character window ``[start_index, start_index + max_length)``.

    The notice is added whenever the content is longer than ``max_length``.
    """
    end_index = start_index + max_length
    window = content[start_index:end_index]
    if len(content) > max_length:
        window += (
            f"\n\n<e>Content truncated. Call the fetch tool with a start_index of {end_index} "
            "to get more content.</e>"
        )
    return window


def format_image_list(urls) -> str:
    if not urls:
        return ""
    lines = ["Images found in article:"]
    lines.extend(f"- {url}" for url in urls)
    return "\n\n" + "\n".join(lines)


def assemble_response(request: FetchRequest, outcome: Union[FetchResult, FetchFailure]) -> ToolResponse:
    """Turn a pipeline outcome into the text handed back to the caller."""
    if isinstance(outcome, FetchFailure):
        return ToolResponse(text=f"Error: {outcome.message}", is_error=True)

    body = truncate_content(outcome.rendered_content, request.start_index, request.max_length)
    text = f"{outcome.prefix_note}Contents of {request.url}:\n{body}"
    text += format_image_list(outcome.image_source_urls)
    return ToolResponse(text=text)

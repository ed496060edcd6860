"""MCP server exposing the fetch tool."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from mcp.server.fastmcp import FastMCP
from mcp.types import CallToolResult, TextContent

from .config import DEFAULT_MAX_LENGTH, ServerSettings
from .models import FetchFailure, FetchRequest, ToolResponse
from .pipeline import run_fetch
from .response import assemble_response

logger = logging.getLogger("mcp_fetch.mcp")

mcp = FastMCP(name="mcp-fetch")

_settings = ServerSettings()


def configure(settings: ServerSettings) -> None:
    """Replace the settings used by subsequent tool calls."""
    global _settings
    _settings = settings


def handle_fetch(
    url: Any,
    max_length: Any = DEFAULT_MAX_LENGTH,
    start_index: Any = 0,
    raw: Any = False,
    settings: ServerSettings | None = None,
    **pipeline_kwargs: Any,
) -> ToolResponse:
    """Validate the arguments, run the pipeline and build the payload.

    Every failure, expected or not, comes back as an error payload.
    """
    try:
        request = FetchRequest(url=url, max_length=max_length, start_index=start_index, raw=raw)
    except ValueError as exc:
        return ToolResponse(text=f"Error: {exc}", is_error=True)

    try:
        outcome = run_fetch(request, settings or _settings, **pipeline_kwargs)
    except Exception as exc:  # noqa: BLE001 - tool calls never fault the transport
        logger.exception("Unexpected error fetching %s", request.url)
        outcome = FetchFailure(f"Failed to fetch {request.url}: {exc}")
    return assemble_response(request, outcome)


# Arguments stay untyped here; FetchRequest owns validation and its error text.
@mcp.tool(structured_output=False)
async def fetch(
    url: Any,
    maxLength: Any = DEFAULT_MAX_LENGTH,  # noqa: N803 - wire argument names
    startIndex: Any = 0,  # noqa: N803
    raw: Any = False,
) -> CallToolResult:
    """Fetches a URL from the internet and optionally extracts its contents as markdown."""

    response = await asyncio.to_thread(handle_fetch, url, maxLength, startIndex, raw)
    return CallToolResult(
        content=[TextContent(type="text", text=response.text)],
        isError=response.is_error,
    )


def main(settings: ServerSettings | None = None) -> None:
    """Entry point for running the MCP server."""
    logging.basicConfig(level=logging.ERROR)
    if settings is not None:
        configure(settings)
    mcp.run()


if __name__ == "__main__":
    main()

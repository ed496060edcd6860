"""Command-line entry point for the fetch server."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Iterable, Sequence

from .config import (
    DEFAULT_MAX_LENGTH,
    DEFAULT_USER_AGENT_AUTONOMOUS,
    ServerSettings,
)

logger = logging.getLogger("mcp_fetch.cli")


def _ensure_command_prefix(argv: Sequence[str], commands: Iterable[str]) -> Sequence[str]:
    if not argv:
        return ("serve",)
    first = argv[0]
    if first in commands or first in ("-h", "--help"):
        return argv
    return ("serve", *argv)


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--user-agent",
        default=DEFAULT_USER_AGENT_AUTONOMOUS,
        help="User-Agent header sent with every request and checked against robots.txt",
    )
    parser.add_argument(
        "--proxy-url",
        default=None,
        help="Proxy for all requests (defaults to $MCP_FETCH_PROXY, then HTTP(S)_PROXY)",
    )
    parser.add_argument(
        "--ignore-robots-txt",
        action="store_true",
        help="Skip the robots.txt check",
    )
    parser.add_argument(
        "--no-clipboard",
        action="store_true",
        help="List article images without downloading them or touching the clipboard",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=30.0,
        help="Timeout in seconds for the page and robots.txt requests",
    )
    parser.add_argument(
        "--image-timeout",
        type=float,
        default=15.0,
        help="Timeout in seconds for each image download",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )


def _add_get_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("url", help="URL to fetch")
    parser.add_argument(
        "--max-length",
        type=int,
        default=DEFAULT_MAX_LENGTH,
        help="Maximum number of characters to return",
    )
    parser.add_argument(
        "--start-index",
        type=int,
        default=0,
        help="Character offset to start returning content from",
    )
    parser.add_argument(
        "--raw",
        action="store_true",
        help="Return the raw body instead of simplified markdown",
    )


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Fetch web pages as markdown and hand their images to the clipboard.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve_parser = subparsers.add_parser("serve", help="Run the MCP server on stdio")
    _add_common_arguments(serve_parser)

    get_parser = subparsers.add_parser("get", help="Fetch a single URL and print the result")
    _add_get_arguments(get_parser)
    _add_common_arguments(get_parser)

    argv = list(sys.argv[1:] if argv is None else argv)
    argv = list(_ensure_command_prefix(argv, subparsers.choices.keys()))
    return parser.parse_args(argv)


def settings_from_args(args: argparse.Namespace) -> ServerSettings:
    return ServerSettings(
        user_agent=args.user_agent,
        proxy_url=args.proxy_url,
        ignore_robots_txt=args.ignore_robots_txt,
        publish_images=not args.no_clipboard,
        request_timeout=args.timeout,
        image_timeout=args.image_timeout,
    )


def _run_get(args: argparse.Namespace) -> int:
    from .mcp_server import handle_fetch

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )
    response = handle_fetch(
        args.url,
        args.max_length,
        args.start_index,
        args.raw,
        settings=settings_from_args(args),
    )
    stream = sys.stderr if response.is_error else sys.stdout
    stream.write(response.text if response.text.endswith("\n") else response.text + "\n")
    stream.flush()
    return 1 if response.is_error else 0


def _run_serve(args: argparse.Namespace) -> int:
    from .mcp_server import configure, mcp

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.ERROR,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )
    configure(settings_from_args(args))
    logger.info("MCP fetch server running on stdio")
    mcp.run()
    return 0


def main(argv: Sequence[str] | None = None) -> None:
    args = parse_args(argv)
    try:
        if args.command == "get":
            status = _run_get(args)
        else:
            status = _run_serve(args)
    except KeyboardInterrupt:
        status = 130
    except Exception:  # noqa: BLE001 - startup failures end the process
        logger.exception("Fatal error running server")
        status = 1
    sys.exit(status)


if __name__ == "__main__":
    main()

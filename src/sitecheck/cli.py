"""
Command-line interface for the link checker.
"""
from __future__ import annotations

import argparse
import logging
import signal
import sys
from typing import List, Optional

from sitecheck import __version__
from sitecheck.config import DEFAULT_CONNECT_TIMEOUT, DEFAULT_MAX_CONCURRENT, ConfigError, build_config
from sitecheck.core import Crawler

EXIT_INTERRUPTED = 130


def setup_logging(debug: bool) -> None:
    """Send diagnostics to stderr; results are printed separately."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="[%(asctime)s] %(levelname)s %(name)s (%(threadName)s): %(message)s",
        stream=sys.stderr,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sitecheck",
        description="Fetch every page linked from a start URL on the same host and report broken ones.",
    )
    parser.add_argument("base_url", help="URL to check (e.g. https://example.com/)")
    parser.add_argument("-e", "--exclude-pattern", help="Regular expression; matching URLs are not fetched")
    parser.add_argument(
        "-H",
        "--request-header",
        dest="request_headers",
        action="append",
        default=[],
        metavar="'KEY: VALUE'",
        help="Extra request header, may be repeated",
    )
    parser.add_argument("-b", "--verbose", action="store_true", help="Keep every line and show details")
    parser.add_argument(
        "-m",
        "--max-concurrent",
        type=int,
        default=DEFAULT_MAX_CONCURRENT,
        help=f"Maximum requests in flight (default: {DEFAULT_MAX_CONCURRENT})",
    )
    parser.add_argument(
        "--connect-timeout",
        type=float,
        default=DEFAULT_CONNECT_TIMEOUT,
        help=f"Connect timeout in seconds (default: {DEFAULT_CONNECT_TIMEOUT:g})",
    )
    parser.add_argument("--verify-tls", action="store_true", help="Reject invalid TLS certificates")
    parser.add_argument("--debug", action="store_true", help="Log crawl internals to stderr")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the link checker CLI."""
    args = build_parser().parse_args(argv)
    setup_logging(args.debug)

    try:
        config = build_config(
            args.base_url,
            exclude_pattern=args.exclude_pattern,
            headers=args.request_headers,
            max_concurrent=args.max_concurrent,
            verbose=args.verbose,
            connect_timeout=args.connect_timeout,
            verify_tls=args.verify_tls,
        )
    except ConfigError as e:
        sys.stderr.write(f"error: {e}\n")
        return 2

    crawler = Crawler(config)
    signal.signal(signal.SIGINT, lambda signum, frame: crawler.stop())
    summary = crawler.run()

    if summary.interrupted:
        return EXIT_INTERRUPTED
    return 0 if summary.ok else 1


if __name__ == "__main__":
    raise SystemExit(main())

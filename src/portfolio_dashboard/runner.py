"""Command line entry point for serving the portfolio dashboard."""
from __future__ import annotations

import argparse
import os
from typing import Iterable

import uvicorn

from .config import load_environment
from .logging_utils import configure_logging

API_URL_KEY = "PORTFOLIO_DASHBOARD_API_URL"


def parse_args(args: Iterable[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--host", default="127.0.0.1", help="Interface to bind")
    parser.add_argument("--port", type=int, default=8000, help="Port to listen on")
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging output",
    )
    return parser.parse_args(args=args)


def loopback_url(host: str, port: int) -> str:
    """URL the server can use to reach itself when bound to ``host``."""

    if host in {"0.0.0.0", ""}:
        host = "127.0.0.1"
    elif host == "::":
        host = "::1"
    if ":" in host and not host.startswith("["):
        host = f"[{host}]"
    return f"http://{host}:{port}"


def main(argv: Iterable[str] | None = None) -> None:
    options = parse_args(argv)
    if options.verbose:
        os.environ["PORTFOLIO_DASHBOARD_LOG_LEVEL"] = "DEBUG"
    # The page shell calls back into this server for its first render unless
    # the shell or the profile file points it elsewhere.
    if not load_environment().get(API_URL_KEY):
        os.environ[API_URL_KEY] = loopback_url(options.host, options.port)
    configure_logging()
    uvicorn.run(
        "portfolio_dashboard.app:app",
        host=options.host,
        port=options.port,
        log_level="debug" if options.verbose else "info",
    )


if __name__ == "__main__":  # pragma: no cover
    main()

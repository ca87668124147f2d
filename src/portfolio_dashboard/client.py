"""HTTP client for the portfolio data endpoint."""
from __future__ import annotations

import logging
from typing import List

import requests

from .models import Holding

LOGGER = logging.getLogger(__name__)

PORTFOLIO_PATH = "/api/portfolio"
NO_CACHE_HEADERS = {"Cache-Control": "no-store", "Pragma": "no-cache"}


class PortfolioFetchError(RuntimeError):
    """Raised when the portfolio endpoint cannot be read."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class PortfolioClient:
    """Reads holdings from ``GET /api/portfolio``."""

    def __init__(
        self, base_url: str, timeout: float = 10.0, session: requests.Session | None = None
    ) -> None:
        self.url = base_url.rstrip("/") + PORTFOLIO_PATH
        self.timeout = timeout
        self.session = session or requests.Session()

    def fetch_portfolio(self, *, fresh: bool = False) -> List[Holding]:
        """Fetch and decode the current portfolio.

        ``fresh`` asks intermediaries not to serve a cached copy.
        """

        headers = dict(NO_CACHE_HEADERS) if fresh else {}
        LOGGER.debug("Requesting portfolio from %s", self.url)
        try:
            response = self.session.get(self.url, headers=headers, timeout=self.timeout)
        except requests.RequestException as exc:
            raise PortfolioFetchError(f"Could not reach {self.url}: {exc}") from exc

        if not response.ok:
            raise PortfolioFetchError(
                f"Portfolio endpoint returned status {response.status_code}",
                status_code=response.status_code,
            )

        try:
            payload = response.json()
            rows = payload["portfolio"]
            return [Holding.from_dict(row) for row in rows]
        except (ValueError, KeyError, TypeError, AttributeError) as exc:
            raise PortfolioFetchError(f"Malformed portfolio payload: {exc}") from exc


def load_initial_portfolio(client: PortfolioClient) -> List[Holding]:
    """Fetch the first view state, degrading to an empty portfolio on failure."""

    try:
        return client.fetch_portfolio(fresh=True)
    except PortfolioFetchError as exc:
        if exc.status_code is not None:
            LOGGER.error("Failed to fetch initial portfolio data. Status: %s", exc.status_code)
        else:
            LOGGER.error("Could not load initial portfolio data: %s", exc)
        return []


__all__ = ["PortfolioClient", "PortfolioFetchError", "load_initial_portfolio"]

"""HTML rendering of the portfolio table."""
from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence

from jinja2 import Environment, FileSystemLoader, select_autoescape

from .aggregation import PortfolioTable, build_table
from .models import Holding

TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"
TABLE_TEMPLATE = "portfolio_table.html"
NO_DATA_MESSAGE = "No portfolio data available."


def format_amount(value: float) -> str:
    return f"{value:.2f}"


def gain_class(value: float) -> str:
    return "gain" if value >= 0 else "loss"


def _build_environment() -> Environment:
    env = Environment(
        loader=FileSystemLoader(str(TEMPLATE_DIR)),
        autoescape=select_autoescape(["html"]),
    )
    env.filters["amount"] = format_amount
    env.filters["gain_class"] = gain_class
    return env


environment = _build_environment()


def render_table(
    holdings: Sequence[Holding],
    error: Optional[str] = None,
    table: Optional[PortfolioTable] = None,
) -> str:
    """Render the table fragment for a holdings snapshot.

    ``table`` may carry aggregates already computed for ``holdings``.
    """

    if table is None:
        table = build_table(holdings)
    return environment.get_template(TABLE_TEMPLATE).render(
        holdings=holdings,
        error=error,
        table=table,
        no_data_message=NO_DATA_MESSAGE,
    )


__all__ = ["NO_DATA_MESSAGE", "environment", "format_amount", "gain_class", "render_table"]

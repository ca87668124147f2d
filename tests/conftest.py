"""Shared fixtures for the dashboard tests."""
from __future__ import annotations

import pytest

from portfolio_dashboard.models import Holding


@pytest.fixture
def make_holding():
    """Factory for holdings with sensible defaults."""

    def _make(
        particulars: str = "Sample Co",
        purchase_price: float = 100.0,
        quantity: int = 10,
        sector: str = "A",
        cmp: float = 100.0,
        exchange: str = "NSE",
    ) -> Holding:
        return Holding(
            particulars=particulars,
            purchase_price=purchase_price,
            quantity=quantity,
            sector=sector,
            exchange=exchange,
            symbol=f"{particulars.upper().replace(' ', '')}.NS",
            cmp=cmp,
        )

    return _make

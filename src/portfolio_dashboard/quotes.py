"""Simulated market quotes for the seed portfolio."""
from __future__ import annotations

import logging
import random
from typing import Iterable, List

from .models import Holding, SeedHolding

LOGGER = logging.getLogger(__name__)

PRICE_SWING = 0.05
PE_RANGE = (15.0, 35.0)
QUARTERS = 4


def quote_holding(seed: SeedHolding, rng: random.Random) -> Holding:
    """Attach a randomised CMP, P/E ratio and earnings label to ``seed``."""

    fluctuation = rng.uniform(-PRICE_SWING, PRICE_SWING) * seed.purchase_price
    return Holding(
        particulars=seed.particulars,
        purchase_price=seed.purchase_price,
        quantity=seed.quantity,
        sector=seed.sector,
        exchange=seed.exchange,
        symbol=seed.symbol,
        cmp=round(seed.purchase_price + fluctuation, 2),
        pe_ratio=round(rng.uniform(*PE_RANGE), 2),
        latest_earnings=f"Q{rng.randint(1, QUARTERS)} Earnings Update",
    )


def generate_portfolio(
    seed_holdings: Iterable[SeedHolding], rng: random.Random | None = None
) -> List[Holding]:
    """Return a fresh portfolio in seed order with newly simulated market data."""

    rng = rng or random.Random()
    portfolio = [quote_holding(seed, rng) for seed in seed_holdings]
    LOGGER.debug("Generated quotes for %d holdings", len(portfolio))
    return portfolio


__all__ = ["generate_portfolio", "quote_holding", "PRICE_SWING", "PE_RANGE"]

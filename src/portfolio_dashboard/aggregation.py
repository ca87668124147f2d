"""Sector grouping and portfolio totals."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Sequence

from .models import Holding


@dataclass(slots=True)
class SectorGroup:
    """Holdings sharing a sector label, with running totals."""

    sector: str
    holdings: List[Holding] = field(default_factory=list)
    total_investment: float = 0.0
    total_present_value: float = 0.0

    @property
    def gain_loss(self) -> float:
        return self.total_present_value - self.total_investment

    def add(self, holding: Holding) -> None:
        self.holdings.append(holding)
        self.total_investment += holding.investment
        self.total_present_value += holding.present_value


@dataclass(frozen=True, slots=True)
class PortfolioTable:
    """Aggregates derived from one holdings snapshot."""

    total_investment: float
    groups: dict[str, SectorGroup]

    def percentage(self, amount: float) -> float:
        return percentage_of(amount, self.total_investment)


def total_investment(holdings: Iterable[Holding]) -> float:
    """Sum of purchase price times quantity across ``holdings``."""

    return sum((holding.investment for holding in holdings), 0.0)


def group_by_sector(holdings: Iterable[Holding]) -> dict[str, SectorGroup]:
    """Group holdings by sector in a single pass, keeping first-seen order."""

    groups: dict[str, SectorGroup] = {}
    for holding in holdings:
        group = groups.get(holding.sector)
        if group is None:
            group = groups[holding.sector] = SectorGroup(holding.sector)
        group.add(holding)
    return groups


def percentage_of(amount: float, total: float) -> float:
    """Share of ``total`` represented by ``amount``, in percent."""

    if total <= 0:
        return 0.0
    return amount / total * 100


def build_table(holdings: Sequence[Holding]) -> PortfolioTable:
    return PortfolioTable(
        total_investment=total_investment(holdings),
        groups=group_by_sector(holdings),
    )


__all__ = [
    "PortfolioTable",
    "SectorGroup",
    "build_table",
    "group_by_sector",
    "percentage_of",
    "total_investment",
]

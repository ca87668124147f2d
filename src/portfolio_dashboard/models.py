"""Domain models representing portfolio holdings."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Mapping, Optional


EXCHANGES = ("NSE", "BSE")


@dataclass(frozen=True, slots=True)
class SeedHolding:
    """Static purchase data for a single position."""

    particulars: str
    purchase_price: float
    quantity: int
    sector: str
    exchange: str
    symbol: str

    def __post_init__(self) -> None:
        if not math.isfinite(self.purchase_price) or self.purchase_price <= 0:
            raise ValueError(f"Purchase price must be a positive number for {self.particulars}")
        if self.quantity <= 0:
            raise ValueError(f"Quantity must be positive for {self.particulars}")
        if self.exchange not in EXCHANGES:
            raise ValueError(f"Unknown exchange {self.exchange!r} for {self.particulars}")


@dataclass(slots=True)
class Holding:
    """A stock position with its simulated market data."""

    particulars: str
    purchase_price: float
    quantity: int
    sector: str
    exchange: str
    symbol: str
    cmp: float
    pe_ratio: Optional[float] = None
    latest_earnings: Optional[str] = None

    @property
    def investment(self) -> float:
        return self.purchase_price * self.quantity

    @property
    def present_value(self) -> float:
        return self.cmp * self.quantity

    @property
    def gain_loss(self) -> float:
        return self.present_value - self.investment

    def to_dict(self) -> dict[str, Any]:
        """Serialise using the JSON key names served by the API."""

        payload: dict[str, Any] = {
            "particulars": self.particulars,
            "purchasePrice": self.purchase_price,
            "quantity": self.quantity,
            "sector": self.sector,
            "exchange": self.exchange,
            "symbol": self.symbol,
            "cmp": self.cmp,
        }
        if self.pe_ratio is not None:
            payload["peRatio"] = self.pe_ratio
        if self.latest_earnings is not None:
            payload["latestEarnings"] = self.latest_earnings
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Holding":
        """Build a holding from an API payload.

        Raises ``ValueError`` when a required key is missing or a value cannot be
        coerced to the expected type.
        """

        try:
            pe_ratio = payload.get("peRatio")
            return cls(
                particulars=str(payload["particulars"]),
                purchase_price=float(payload["purchasePrice"]),
                quantity=int(payload["quantity"]),
                sector=str(payload["sector"]),
                exchange=str(payload["exchange"]),
                symbol=str(payload["symbol"]),
                cmp=float(payload["cmp"]),
                pe_ratio=float(pe_ratio) if pe_ratio is not None else None,
                latest_earnings=payload.get("latestEarnings"),
            )
        except KeyError as exc:
            raise ValueError(f"Holding payload is missing {exc.args[0]!r}") from exc
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Invalid holding payload: {exc}") from exc


__all__ = ["EXCHANGES", "Holding", "SeedHolding"]

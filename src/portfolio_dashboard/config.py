"""Application configuration helpers."""
from __future__ import annotations

from dataclasses import dataclass
import math
import os
from pathlib import Path
from typing import Mapping

from .models import SeedHolding


DEFAULT_SEED_HOLDINGS: tuple[SeedHolding, ...] = (
    SeedHolding("Reliance Industries", 2470.10, 100, "Energy", "NSE", "RELIANCE.NS"),
    SeedHolding("Tata Consultancy Services", 3217.90, 50, "Technology", "NSE", "TCS.NS"),
    SeedHolding("HDFC Bank", 1422.35, 150, "Financials", "NSE", "HDFCBANK.NS"),
    SeedHolding("ICICI Bank", 875.50, 200, "Financials", "NSE", "ICICIBANK.NS"),
    SeedHolding("Infosys", 1485.75, 80, "Technology", "NSE", "INFY.NS"),
    SeedHolding("Hindustan Unilever", 2550.20, 120, "Consumer Goods", "NSE", "HINDUNILVR.NS"),
    SeedHolding("State Bank of India", 575.80, 300, "Financials", "NSE", "SBIN.NS"),
    SeedHolding("Bharti Airtel", 777.90, 250, "Telecommunication", "NSE", "BHARTIARTL.NS"),
    SeedHolding("ITC", 442.55, 400, "Consumer Goods", "NSE", "ITC.NS"),
    SeedHolding("Larsen & Toubro", 2375.45, 70, "Infrastructure", "NSE", "LT.NS"),
)

DEFAULT_API_URL = "http://127.0.0.1:8000"


def _resolve_env_file(candidate: str) -> Path | None:
    """Return the first matching environment file path if it exists."""

    path = Path(candidate)
    if path.is_absolute() and path.exists():
        return path

    search_roots = [Path.cwd(), Path(__file__).resolve().parent]
    search_roots.extend(Path(__file__).resolve().parents)

    seen: set[Path] = set()
    for root in search_roots:
        root = root.resolve()
        if root in seen:
            continue
        seen.add(root)
        potential = root / candidate
        if potential.exists():
            return potential
    return None


def _parse_env_file(path: Path) -> dict[str, str]:
    """Parse a dotenv-style file into a mapping."""

    variables: dict[str, str] = {}
    for raw_line in path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("export "):
            line = line[len("export ") :].strip()
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        variables[key.strip()] = value.strip().strip('"').strip("'")
    return variables


def _load_profile_env(env: Mapping[str, str]) -> dict[str, str]:
    """Load environment variables from the selected profile file."""

    explicit_file = env.get("PORTFOLIO_DASHBOARD_ENV_FILE")
    profile = env.get("PORTFOLIO_DASHBOARD_ENV", "local")
    candidate = explicit_file or f".env.{profile}"

    path = _resolve_env_file(candidate)
    if path is None:
        return {}
    return _parse_env_file(path)


def load_environment(env: Mapping[str, str] | None = None) -> dict[str, str]:
    """Return the profile file variables overlaid with the shell environment."""

    base_env = dict(os.environ if env is None else env)
    file_env = _load_profile_env(base_env)
    # Environment variables set in the shell take precedence over the file.
    return {**file_env, **base_env}


def _positive_float(env: Mapping[str, str], key: str, default: float) -> float:
    raw = env.get(key)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise RuntimeError(f"{key} must be a number, got {raw!r}") from exc
    if not math.isfinite(value) or value <= 0:
        raise RuntimeError(f"{key} must be a positive finite number, got {raw!r}")
    return value


def parse_seed_holdings(raw: str) -> tuple[SeedHolding, ...]:
    """Parse ``Name|price|qty|sector|exchange|symbol`` rows, one per line."""

    seed: list[SeedHolding] = []
    for chunk in raw.split("\n"):
        if not chunk.strip():
            continue
        parts = [part.strip() for part in chunk.split("|")]
        if len(parts) != 6:
            raise RuntimeError(
                "Each seed holding must be of the form 'Name|price|qty|sector|exchange|symbol'"
            )
        name, price, quantity, sector, exchange, symbol = parts
        try:
            seed.append(
                SeedHolding(
                    particulars=name,
                    purchase_price=float(price),
                    quantity=int(quantity),
                    sector=sector,
                    exchange=exchange.upper(),
                    symbol=symbol,
                )
            )
        except ValueError as exc:
            raise RuntimeError(f"Invalid seed holding {chunk.strip()!r}: {exc}") from exc
    if not seed:
        raise RuntimeError("PORTFOLIO_DASHBOARD_SEED did not define any holdings")
    return tuple(seed)


@dataclass(frozen=True)
class Settings:
    """Runtime configuration."""

    api_base_url: str = DEFAULT_API_URL
    refresh_interval_seconds: float = 15.0
    http_timeout_seconds: float = 10.0
    view_idle_timeout_seconds: float = 120.0
    seed_holdings: tuple[SeedHolding, ...] = DEFAULT_SEED_HOLDINGS

    @staticmethod
    def load(env: Mapping[str, str] | None = None) -> "Settings":
        """Load settings from environment variables."""

        merged_env = load_environment(env)

        api_base_url = merged_env.get("PORTFOLIO_DASHBOARD_API_URL") or DEFAULT_API_URL

        seed_env = merged_env.get("PORTFOLIO_DASHBOARD_SEED")
        seed_holdings = parse_seed_holdings(seed_env) if seed_env else DEFAULT_SEED_HOLDINGS

        return Settings(
            api_base_url=api_base_url.rstrip("/"),
            refresh_interval_seconds=_positive_float(
                merged_env, "PORTFOLIO_DASHBOARD_REFRESH_SECONDS", 15.0
            ),
            http_timeout_seconds=_positive_float(merged_env, "PORTFOLIO_DASHBOARD_HTTP_TIMEOUT", 10.0),
            view_idle_timeout_seconds=_positive_float(
                merged_env, "PORTFOLIO_DASHBOARD_VIEW_IDLE_SECONDS", 120.0
            ),
            seed_holdings=seed_holdings,
        )


__all__ = ["Settings", "DEFAULT_SEED_HOLDINGS", "load_environment", "parse_seed_holdings"]

"""Display formatting: token amounts from base units, dates from Unix timestamps."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import ROUND_DOWN, Decimal


def token_amount(base_units: int, decimals: int = 18, precision: int = 3) -> Decimal:
    """
    Convert base units (wei) to whole tokens rounded down to `precision` places.

    Rounding down keeps the displayed amount from ever overstating the balance.
    """
    quantum = Decimal(1).scaleb(-precision)
    return (Decimal(base_units).scaleb(-decimals)).quantize(quantum, rounding=ROUND_DOWN)


def format_token_amount(amount: Decimal | str, symbol: str) -> str:
    """'12.000 MON'."""
    return f"{amount} {symbol}".strip()


def format_timestamp(ts: int) -> str:
    """Unix seconds -> 'Feb 26, 2025' (UTC)."""
    dt = datetime.fromtimestamp(int(ts), tz=timezone.utc)
    return f"{dt:%b} {dt.day}, {dt.year}"

"""
Hex quantity and ABI helpers for EVM JSON-RPC payloads.

Addresses passed here must already be normalized (lowercase, 0x + 40 hex).
"""

from __future__ import annotations

from typing import Any

# balanceOf(address)
BALANCE_OF_SELECTOR = "0x70a08231"


def parse_hex_quantity(value: Any) -> int:
    """Decode a JSON-RPC hex quantity ('0x1a' -> 26). '0x' decodes to 0. Raises ValueError."""
    if not isinstance(value, str) or not value.lower().startswith("0x"):
        raise ValueError(f"Expected 0x-prefixed hex quantity, got {value!r}")
    digits = value[2:]
    if not digits:
        return 0
    return int(digits, 16)


def to_hex_quantity(n: int) -> str:
    if n < 0:
        raise ValueError("hex quantity must be non-negative")
    return hex(n)


def address_topic(address: str) -> str:
    """Left-pad a 20-byte address to a 32-byte log topic."""
    return "0x" + address[2:].rjust(64, "0")


def encode_balance_of(address: str) -> str:
    """Call data for ERC-20/721 balanceOf(address)."""
    return BALANCE_OF_SELECTOR + address[2:].rjust(64, "0")

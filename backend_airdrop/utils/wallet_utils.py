"""Wallet address validation and display utilities (EVM, 20-byte addresses)."""

from __future__ import annotations

import re

from web3 import Web3

from backend_airdrop.core.exceptions import AddressValidationError

ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


def is_valid_wallet(w: str) -> bool:
    """Return True if w is 0x followed by exactly 40 hex digits (any case)."""
    return isinstance(w, str) and ADDRESS_RE.fullmatch(w) is not None


def normalize_address(w: str) -> str:
    """Canonical form: lowercase hex with 0x prefix. Raises AddressValidationError."""
    candidate = (w or "").strip()
    if not is_valid_wallet(candidate):
        raise AddressValidationError("Invalid Ethereum address format")
    return "0x" + candidate[2:].lower()


def checksum_address(w: str) -> str:
    """EIP-55 mixed-case display form of a valid address."""
    return Web3.to_checksum_address(normalize_address(w))


def short_address(w: str) -> str:
    """Compact display form: 0x1234...abcd."""
    if not w:
        return ""
    return f"{w[:6]}...{w[-4:]}"

"""
Environment variable loading for Backend Airdrop.

- TARGET_RPC_URL: JSON-RPC endpoint of the chain being analyzed (Monad testnet by default)
- REFERENCE_RPC_URL: JSON-RPC endpoint of the reference chain (Ethereum mainnet); empty disables it
- NFT_CONTRACT_ADDRESS: token contract checked for ownership
- Loads .env from project root when available.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

# Project root: config is backend_airdrop/config/, root is 2 levels up
_CONFIG_DIR = Path(__file__).resolve().parent
_BACKEND_DIR = _CONFIG_DIR.parent
_ROOT = _BACKEND_DIR.parent
_ENV_PATH = _ROOT / ".env"

DEFAULT_TARGET_RPC_URL = "https://testnet-rpc.monad.xyz"
DEFAULT_REFERENCE_RPC_URL = "https://ethereum-rpc.publicnode.com"
DEFAULT_NFT_CONTRACT = "0x922dA3512e2BEBBe32bccE59adf7E6759fB8CEA2"

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off")


def load_airdrop_env() -> None:
    """Load .env from project root. Safe to call multiple times; never overrides real env."""
    load_dotenv(_ENV_PATH, override=False)


def env_str(name: str, default: str) -> str:
    """Stripped env value, or default when unset. An explicitly empty value stays empty."""
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip()


def env_int(name: str, default: int) -> int:
    """Integer env value; accepts decimal or 0x-prefixed hex (block numbers)."""
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw, 16) if raw.lower().startswith("0x") else int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e


def env_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be a number, got {raw!r}") from e


def env_bool(name: str, default: bool) -> bool:
    raw = (os.getenv(name) or "").strip().lower()
    if not raw:
        return default
    if raw in _TRUE_VALUES:
        return True
    if raw in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean flag, got {raw!r}")

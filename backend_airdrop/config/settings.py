"""
Application settings and environment configuration.

Responsibilities:
- Load configuration from environment variables and the .env file.
- Provide defaults for every optional setting and validate ranges.
- Expose a typed, immutable Settings value that callers pass explicitly
  into the RPC clients and the signal collector (no process-wide state).
"""

from __future__ import annotations

from dataclasses import dataclass

from backend_airdrop.config.env import (
    DEFAULT_NFT_CONTRACT,
    DEFAULT_REFERENCE_RPC_URL,
    DEFAULT_TARGET_RPC_URL,
    env_bool,
    env_float,
    env_int,
    env_str,
    load_airdrop_env,
)

# Public RPC providers reject eth_getLogs ranges much larger than this
DEFAULT_LOG_WINDOW_BLOCKS = 100
# Monad testnet block around the early adopter cutoff (Feb 26, 2025)
DEFAULT_HISTORICAL_ANCHOR_BLOCK = 0x700000
DEFAULT_HISTORICAL_WINDOW_BLOCKS = 16
DEFAULT_RPC_TIMEOUT_SEC = 10.0
# Nonces above this are treated as non-standard node semantics and clamped
DEFAULT_TX_COUNT_CEILING = 10_000
DEFAULT_DISCONNECT_POLL_SEC = 0.5


@dataclass(frozen=True)
class Settings:
    """Service configuration. Built by get_settings(); construct directly in tests."""

    target_rpc_url: str = DEFAULT_TARGET_RPC_URL
    reference_rpc_url: str = DEFAULT_REFERENCE_RPC_URL
    rpc_timeout_sec: float = DEFAULT_RPC_TIMEOUT_SEC
    log_window_blocks: int = DEFAULT_LOG_WINDOW_BLOCKS
    historical_anchor_block: int = DEFAULT_HISTORICAL_ANCHOR_BLOCK
    historical_window_blocks: int = DEFAULT_HISTORICAL_WINDOW_BLOCKS
    nft_contract_address: str = DEFAULT_NFT_CONTRACT
    tx_count_ceiling: int = DEFAULT_TX_COUNT_CEILING
    assume_early_adopter_when_unknown: bool = False
    disconnect_poll_sec: float = DEFAULT_DISCONNECT_POLL_SEC
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    def __post_init__(self) -> None:
        if not self.target_rpc_url:
            raise ValueError("target_rpc_url must be non-empty")
        if self.rpc_timeout_sec <= 0:
            raise ValueError("rpc_timeout_sec must be positive")
        if self.log_window_blocks < 1:
            raise ValueError("log_window_blocks must be at least 1")
        if self.historical_window_blocks < 0:
            raise ValueError("historical_window_blocks must be non-negative")
        if self.historical_anchor_block < 0:
            raise ValueError("historical_anchor_block must be non-negative")
        if self.tx_count_ceiling < 1:
            raise ValueError("tx_count_ceiling must be at least 1")

    @property
    def reference_chain_enabled(self) -> bool:
        return bool(self.reference_rpc_url)


def get_settings() -> Settings:
    """
    Return the current application settings read from the environment.

    Called per request through FastAPI Depends, so env changes apply
    without a restart. Raises ValueError on malformed values.
    """
    load_airdrop_env()
    return Settings(
        target_rpc_url=env_str("TARGET_RPC_URL", DEFAULT_TARGET_RPC_URL),
        reference_rpc_url=env_str("REFERENCE_RPC_URL", DEFAULT_REFERENCE_RPC_URL),
        rpc_timeout_sec=env_float("RPC_TIMEOUT_SEC", DEFAULT_RPC_TIMEOUT_SEC),
        log_window_blocks=env_int("LOG_WINDOW_BLOCKS", DEFAULT_LOG_WINDOW_BLOCKS),
        historical_anchor_block=env_int("HISTORICAL_ANCHOR_BLOCK", DEFAULT_HISTORICAL_ANCHOR_BLOCK),
        historical_window_blocks=env_int("HISTORICAL_WINDOW_BLOCKS", DEFAULT_HISTORICAL_WINDOW_BLOCKS),
        nft_contract_address=env_str("NFT_CONTRACT_ADDRESS", DEFAULT_NFT_CONTRACT),
        tx_count_ceiling=env_int("TX_COUNT_CEILING", DEFAULT_TX_COUNT_CEILING),
        assume_early_adopter_when_unknown=env_bool("ASSUME_EARLY_ADOPTER_WHEN_UNKNOWN", False),
        disconnect_poll_sec=env_float("DISCONNECT_POLL_SEC", DEFAULT_DISCONNECT_POLL_SEC),
        api_host=env_str("API_HOST", "0.0.0.0"),
        api_port=env_int("API_PORT", 8000),
    )

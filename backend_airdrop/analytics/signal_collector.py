"""
Chain signal collector: gather on-chain facts for one EVM wallet via JSON-RPC.

Sub-operations (run concurrently, each captured as a SignalResult):
balance, target-chain nonce, reference-chain nonce, NFT balanceOf, latest
block + recent log window, and a small historical log window anchored near
the early adopter cutoff. Failures never propagate: an explicit
apply-defaults step swaps in documented neutral values, logs a warning,
and records the field in WalletSignals.fallbacks.

The two log windows are a heuristic, not a full history scan. First
activity is the earliest block seen in either window; last activity is the
latest block seen in the recent window. Wallets whose activity falls
outside the windows get approximated values.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from backend_airdrop.airdrop_logging import bind_wallet
from backend_airdrop.analytics.models import (
    DEFAULT_EARLY_ADOPTER_CUTOFF,
    FALLBACK_APPROXIMATED,
    FALLBACK_CLAMPED,
    FALLBACK_UNAVAILABLE,
    FALLBACK_UPSTREAM_ERROR,
    WalletSignals,
)
from backend_airdrop.config.settings import Settings
from backend_airdrop.core.exceptions import UpstreamRpcError
from backend_airdrop.rpc.client import JsonRpcClient
from backend_airdrop.rpc.encoding import (
    address_topic,
    encode_balance_of,
    parse_hex_quantity,
    to_hex_quantity,
)
from backend_airdrop.utils.wallet_utils import normalize_address

SIGNAL_BALANCE = "balance"
SIGNAL_TX_COUNT = "transaction_count"
SIGNAL_REFERENCE_TX_COUNT = "reference_transaction_count"
SIGNAL_NFT = "nft_ownership"
SIGNAL_LATEST_BLOCK = "latest_block"
SIGNAL_RECENT_WINDOW = "recent_window"
SIGNAL_HISTORICAL_WINDOW = "historical_window"


@dataclass(frozen=True)
class SignalResult:
    """Outcome of one sub-operation: a value, or the error that replaced it."""

    name: str
    value: Any = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class BlockRef:
    number: int
    timestamp: int


@dataclass(frozen=True)
class WindowScan:
    """Logs matching the wallet topic within [from_block, to_block]."""

    from_block: int
    to_block: int
    log_count: int
    contracts: frozenset[str]
    timestamps: tuple[int, ...]

    @property
    def first_timestamp(self) -> int | None:
        return min(self.timestamps) if self.timestamps else None

    @property
    def last_timestamp(self) -> int | None:
        return max(self.timestamps) if self.timestamps else None


async def capture(name: str, pending: Awaitable[Any]) -> SignalResult:
    """Await one sub-operation; upstream faults and malformed payloads become a failed SignalResult."""
    try:
        return SignalResult(name, value=await pending)
    except UpstreamRpcError as e:
        return SignalResult(name, error=e)
    except (ValueError, TypeError, KeyError) as e:
        return SignalResult(name, error=e)


class ChainSignalCollector:
    """
    Builds WalletSignals for one address per call. Holds no per-wallet state,
    so one instance may serve concurrent calls.
    """

    def __init__(
        self,
        target: JsonRpcClient,
        settings: Settings,
        *,
        reference: JsonRpcClient | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._target = target
        self._reference = reference
        self._settings = settings
        self._clock = clock

    async def collect(
        self,
        address: str,
        *,
        early_adopter_cutoff: int = DEFAULT_EARLY_ADOPTER_CUTOFF,
    ) -> WalletSignals:
        """Query the chain(s) and return fully populated signals; never raises on upstream faults."""
        address = normalize_address(address)
        log = bind_wallet(address)
        log.info("signal_collection_start")

        (
            balance,
            tx_count,
            nft,
            historical,
            (latest, recent),
            reference_count,
        ) = await asyncio.gather(
            capture(SIGNAL_BALANCE, self._fetch_quantity(self._target, "eth_getBalance", address)),
            capture(SIGNAL_TX_COUNT, self._fetch_quantity(self._target, "eth_getTransactionCount", address)),
            capture(SIGNAL_NFT, self._check_nft(address)),
            capture(SIGNAL_HISTORICAL_WINDOW, self._scan_historical(address)),
            self._probe_recent(address),
            self._probe_reference(address),
        )

        signals = self._apply_defaults(
            address,
            early_adopter_cutoff,
            balance=balance,
            tx_count=tx_count,
            reference_count=reference_count,
            nft=nft,
            latest=latest,
            recent=recent,
            historical=historical,
        )
        log.info(
            "signal_collection_done",
            balance_wei=str(signals.balance_wei),
            transaction_count=signals.transaction_count,
            reference_transaction_count=signals.reference_transaction_count,
            unique_contracts=signals.unique_contracts,
            has_required_nft=signals.has_required_nft,
            fallbacks=dict(signals.fallbacks),
        )
        return signals

    # -------------------------------------------------------------------------
    # Sub-operations
    # -------------------------------------------------------------------------

    async def _fetch_quantity(self, client: JsonRpcClient, method: str, address: str) -> int:
        return parse_hex_quantity(await client.call(method, [address, "latest"]))

    async def _fetch_block(self, tag: str) -> BlockRef:
        block = await self._target.call("eth_getBlockByNumber", [tag, False])
        if not isinstance(block, dict):
            raise ValueError(f"block {tag} is not an object")
        return BlockRef(
            number=parse_hex_quantity(block["number"]),
            timestamp=parse_hex_quantity(block["timestamp"]),
        )

    async def _check_nft(self, address: str) -> bool:
        raw = await self._target.call(
            "eth_call",
            [{"to": self._settings.nft_contract_address, "data": encode_balance_of(address)}, "latest"],
        )
        return parse_hex_quantity(raw) > 0

    async def _scan_window(self, address: str, from_block: int, to_block: int) -> WindowScan:
        """
        One eth_getLogs over the window, filtered on topic1 == wallet.

        Timestamps come from log.blockTimestamp when the node includes it;
        otherwise only the earliest and latest matching blocks are fetched.
        """
        logs = await self._target.call(
            "eth_getLogs",
            [{
                "fromBlock": to_hex_quantity(from_block),
                "toBlock": to_hex_quantity(to_block),
                "topics": [None, address_topic(address)],
            }],
        )
        if not isinstance(logs, list):
            raise ValueError("eth_getLogs result is not a list")

        contracts: set[str] = set()
        block_numbers: set[int] = set()
        known_ts: dict[int, int] = {}
        for entry in logs:
            if not isinstance(entry, dict):
                continue
            emitter = entry.get("address")
            if isinstance(emitter, str) and emitter:
                contracts.add(emitter.lower())
            if entry.get("blockNumber") is None:
                # pending log
                continue
            number = parse_hex_quantity(entry["blockNumber"])
            block_numbers.add(number)
            if entry.get("blockTimestamp") is not None:
                known_ts[number] = parse_hex_quantity(entry["blockTimestamp"])

        if block_numbers:
            boundary = sorted({min(block_numbers), max(block_numbers)} - known_ts.keys())
            blocks = await asyncio.gather(*(self._fetch_block(to_hex_quantity(n)) for n in boundary))
            known_ts.update((b.number, b.timestamp) for b in blocks)

        return WindowScan(
            from_block=from_block,
            to_block=to_block,
            log_count=len(logs),
            contracts=frozenset(contracts),
            timestamps=tuple(sorted(known_ts.values())),
        )

    async def _scan_historical(self, address: str) -> WindowScan:
        anchor = self._settings.historical_anchor_block
        return await self._scan_window(address, anchor, anchor + self._settings.historical_window_blocks)

    async def _probe_recent(self, address: str) -> tuple[SignalResult, SignalResult]:
        """Latest block, then the most recent log window ending at it."""
        latest = await capture(SIGNAL_LATEST_BLOCK, self._fetch_block("latest"))
        if not latest.ok:
            return latest, SignalResult(SIGNAL_RECENT_WINDOW, error=latest.error)
        head = latest.value.number
        start = max(0, head - self._settings.log_window_blocks)
        recent = await capture(SIGNAL_RECENT_WINDOW, self._scan_window(address, start, head))
        return latest, recent

    async def _probe_reference(self, address: str) -> SignalResult | None:
        if self._reference is None:
            return None
        return await capture(
            SIGNAL_REFERENCE_TX_COUNT,
            self._fetch_quantity(self._reference, "eth_getTransactionCount", address),
        )

    # -------------------------------------------------------------------------
    # Apply-defaults step
    # -------------------------------------------------------------------------

    def _apply_defaults(
        self,
        address: str,
        cutoff: int,
        *,
        balance: SignalResult,
        tx_count: SignalResult,
        reference_count: SignalResult | None,
        nft: SignalResult,
        latest: SignalResult,
        recent: SignalResult,
        historical: SignalResult,
    ) -> WalletSignals:
        log = bind_wallet(address)
        fallbacks: dict[str, str] = {}
        now = int(self._clock())

        def resolve(result: SignalResult, field_name: str, default: Any) -> Any:
            if result.ok:
                return result.value
            log.warning(
                "signal_fallback_applied",
                signal=result.name,
                field=field_name,
                default=str(default),
                error=str(result.error),
                error_type=type(result.error).__name__,
            )
            fallbacks[field_name] = FALLBACK_UPSTREAM_ERROR
            return default

        balance_wei = resolve(balance, "balance_wei", 0)
        has_nft = resolve(nft, "has_required_nft", False)
        transaction_count = self._clamp(
            resolve(tx_count, "transaction_count", 0), "transaction_count", fallbacks, log
        )
        if reference_count is None:
            reference_transactions = 0
            fallbacks["reference_transaction_count"] = FALLBACK_UNAVAILABLE
        else:
            reference_transactions = self._clamp(
                resolve(reference_count, "reference_transaction_count", 0),
                "reference_transaction_count",
                fallbacks,
                log,
            )

        scans: list[WindowScan] = []
        scan_failed = False
        for result in (recent, historical):
            if result.ok:
                scans.append(result.value)
                continue
            scan_failed = True
            log.warning(
                "log_window_scan_failed",
                signal=result.name,
                error=str(result.error),
                error_type=type(result.error).__name__,
            )
        contracts: set[str] = set()
        for scan in scans:
            contracts |= scan.contracts
        if scan_failed:
            fallbacks["unique_contracts"] = FALLBACK_UPSTREAM_ERROR

        count_failed = "transaction_count" in fallbacks and transaction_count == 0

        # First activity: earliest block seen in either window
        timestamps = [ts for scan in scans for ts in scan.timestamps]
        if timestamps:
            first_activity = min(timestamps)
        elif transaction_count > 0:
            # Nonce says the wallet is active but neither window caught it
            first_activity = cutoff - 1 if self._settings.assume_early_adopter_when_unknown else cutoff
            fallbacks["first_activity_timestamp"] = FALLBACK_APPROXIMATED
        else:
            first_activity = cutoff
            fallbacks["first_activity_timestamp"] = (
                FALLBACK_UPSTREAM_ERROR if scan_failed or count_failed else FALLBACK_UNAVAILABLE
            )

        # Last activity: recent window only
        recent_timestamps = recent.value.timestamps if recent.ok else ()
        if recent_timestamps:
            last_activity = max(recent_timestamps)
        elif transaction_count > 0 and latest.ok:
            last_activity = latest.value.timestamp
            fallbacks["last_activity_timestamp"] = FALLBACK_APPROXIMATED
        elif transaction_count > 0:
            last_activity = now
            fallbacks["last_activity_timestamp"] = FALLBACK_UPSTREAM_ERROR
        else:
            last_activity = now
            fallbacks["last_activity_timestamp"] = (
                FALLBACK_UPSTREAM_ERROR if not recent.ok or count_failed else FALLBACK_UNAVAILABLE
            )

        return WalletSignals(
            address=address,
            balance_wei=balance_wei,
            transaction_count=transaction_count,
            reference_transaction_count=reference_transactions,
            unique_contracts=len(contracts),
            first_activity_timestamp=first_activity,
            last_activity_timestamp=last_activity,
            has_required_nft=has_nft,
            fallbacks=fallbacks,
        )

    def _clamp(self, count: int, field_name: str, fallbacks: dict[str, str], log: Any) -> int:
        ceiling = self._settings.tx_count_ceiling
        if count <= ceiling:
            return count
        log.warning("transaction_count_clamped", field=field_name, raw=count, ceiling=ceiling)
        fallbacks[field_name] = FALLBACK_CLAMPED
        return ceiling

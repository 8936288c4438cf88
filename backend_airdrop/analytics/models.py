"""
Data models for the eligibility pipeline.

WalletSignals (collector output), EligibilityRequirements (rule config),
CriterionResult and EligibilityVerdict (evaluator output). All are frozen
dataclasses built once per request; nothing here is persisted.
"""

from __future__ import annotations

import operator
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from types import MappingProxyType
from typing import Any, Callable, Mapping

from backend_airdrop.core.exceptions import RequirementsConfigError

# 2025-02-26T00:00:00Z
DEFAULT_EARLY_ADOPTER_CUTOFF = 1740528000

# Reasons recorded in WalletSignals.fallbacks
FALLBACK_UPSTREAM_ERROR = "upstream_error"
FALLBACK_APPROXIMATED = "approximated"
FALLBACK_CLAMPED = "clamped"
FALLBACK_UNAVAILABLE = "unavailable"

COMPARISON_AT_LEAST = "at_least"
COMPARISON_EQUALS = "equals"

_COMPARATORS: dict[str, Callable[[Any, Any], bool]] = {
    COMPARISON_AT_LEAST: operator.ge,
    COMPARISON_EQUALS: operator.eq,
}


@dataclass(frozen=True)
class WalletSignals:
    """
    On-chain facts for one wallet, derived fresh per request.

    fallbacks maps field name -> reason for every field that does not hold a
    real observation (upstream failure, approximation, clamping).
    """

    address: str
    balance_wei: int
    transaction_count: int
    reference_transaction_count: int
    unique_contracts: int
    first_activity_timestamp: int
    last_activity_timestamp: int
    has_required_nft: bool
    fallbacks: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # read-only copy; the collector keeps building its own dict
        object.__setattr__(self, "fallbacks", MappingProxyType(dict(self.fallbacks)))

    def is_observed(self, field_name: str) -> bool:
        return field_name not in self.fallbacks


@dataclass(frozen=True)
class EligibilityRequirements:
    """Airdrop rule thresholds plus the labels used to explain them."""

    min_reference_transactions: int = 10
    min_target_transactions: int = 200
    min_token_balance: str = "10.0"
    require_nft: bool = True
    require_early_adopter: bool = True
    early_adopter_cutoff: int = DEFAULT_EARLY_ADOPTER_CUTOFF
    reference_chain_name: str = "Ethereum Mainnet"
    target_chain_name: str = "Monad testnet"
    token_symbol: str = "MON"
    nft_name: str = "NADS"
    token_decimals: int = 18
    balance_precision: int = 3

    def __post_init__(self) -> None:
        for name in ("min_reference_transactions", "min_target_transactions", "early_adopter_cutoff"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise RequirementsConfigError(f"{name} must be a non-negative integer, got {value!r}")
        for name in ("require_nft", "require_early_adopter"):
            if not isinstance(getattr(self, name), bool):
                raise RequirementsConfigError(f"{name} must be a boolean")
        try:
            balance = Decimal(str(self.min_token_balance))
        except InvalidOperation as e:
            raise RequirementsConfigError(
                f"min_token_balance must be a decimal string, got {self.min_token_balance!r}"
            ) from e
        if not balance.is_finite() or balance < 0:
            raise RequirementsConfigError("min_token_balance must be a finite, non-negative amount")
        if not (0 <= self.balance_precision <= self.token_decimals):
            raise RequirementsConfigError("balance_precision must be between 0 and token_decimals")

    @property
    def min_balance(self) -> Decimal:
        return Decimal(str(self.min_token_balance))

    def as_dict(self) -> dict[str, Any]:
        return {
            "min_reference_transactions": self.min_reference_transactions,
            "min_target_transactions": self.min_target_transactions,
            "min_token_balance": str(self.min_token_balance),
            "require_nft": self.require_nft,
            "require_early_adopter": self.require_early_adopter,
            "early_adopter_cutoff": self.early_adopter_cutoff,
            "reference_chain_name": self.reference_chain_name,
            "target_chain_name": self.target_chain_name,
            "token_symbol": self.token_symbol,
            "nft_name": self.nft_name,
            "token_decimals": self.token_decimals,
            "balance_precision": self.balance_precision,
        }


@dataclass(frozen=True)
class CriterionResult:
    """
    One evaluated rule. satisfied is computed from comparison(actual, required)
    and cannot be set on its own.
    """

    name: str
    label: str
    required: Any
    actual: Any
    comparison: str
    failure_reason: str
    detail: str | None = None

    def __post_init__(self) -> None:
        if self.comparison not in _COMPARATORS:
            raise ValueError(f"Unknown comparison: {self.comparison}")

    @property
    def satisfied(self) -> bool:
        return bool(_COMPARATORS[self.comparison](self.actual, self.required))


@dataclass(frozen=True)
class EligibilityVerdict:
    """Per-criterion breakdown; overall flag and explanation are derived from it."""

    criteria: tuple[CriterionResult, ...]
    success_message: str = (
        "Congratulations! Your wallet meets all criteria for the unofficial airdrop eligibility check."
    )

    @property
    def overall_eligible(self) -> bool:
        return all(c.satisfied for c in self.criteria)

    @property
    def failing(self) -> tuple[CriterionResult, ...]:
        return tuple(c for c in self.criteria if not c.satisfied)

    @property
    def explanation(self) -> str:
        if self.overall_eligible:
            return self.success_message
        reasons = ", ".join(c.failure_reason for c in self.failing)
        return f"Your wallet is not eligible due to: {reasons}."

    def criterion(self, name: str) -> CriterionResult:
        for c in self.criteria:
            if c.name == name:
                return c
        raise KeyError(name)

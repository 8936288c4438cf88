"""
Wallet report assembler: collector -> evaluator -> WalletReport.

No business logic beyond composition; address format validation is done
by the HTTP boundary before this runs.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Protocol

from backend_airdrop.airdrop_logging import bind_wallet
from backend_airdrop.analytics.eligibility import (
    CRITERION_EARLY_ADOPTER,
    CRITERION_TOKEN_BALANCE,
    evaluate_eligibility,
)
from backend_airdrop.analytics.models import (
    CriterionResult,
    EligibilityRequirements,
    EligibilityVerdict,
    WalletSignals,
)
from backend_airdrop.utils.formatting import format_timestamp, format_token_amount
from backend_airdrop.utils.wallet_utils import checksum_address, short_address


class SignalSource(Protocol):
    async def collect(self, address: str, *, early_adopter_cutoff: int) -> WalletSignals: ...


@dataclass(frozen=True)
class WalletReport:
    """Everything the HTTP layer returns for one wallet."""

    signals: WalletSignals
    verdict: EligibilityVerdict
    requirements: EligibilityRequirements

    @property
    def balance(self) -> Decimal:
        return self.verdict.criterion(CRITERION_TOKEN_BALANCE).actual

    @property
    def is_early_adopter(self) -> bool:
        return bool(self.verdict.criterion(CRITERION_EARLY_ADOPTER).actual)

    def _display(self, value: Any) -> Any:
        if isinstance(value, Decimal):
            return format_token_amount(value, self.requirements.token_symbol)
        return value

    def _criterion_dict(self, c: CriterionResult) -> dict[str, Any]:
        return {
            "name": c.name,
            "label": c.label,
            "required": self._display(c.required),
            "actual": self._display(c.actual),
            "satisfied": c.satisfied,
            "detail": c.detail,
        }

    def as_response(self) -> dict[str, Any]:
        s = self.signals
        return {
            "address": s.address,
            "checksum_address": checksum_address(s.address),
            "short_address": short_address(checksum_address(s.address)),
            "balance": format_token_amount(self.balance, self.requirements.token_symbol),
            "balance_wei": str(s.balance_wei),
            "total_transactions": s.transaction_count,
            "reference_transactions": s.reference_transaction_count,
            "unique_contracts": s.unique_contracts,
            "last_activity": format_timestamp(s.last_activity_timestamp),
            "last_activity_timestamp": s.last_activity_timestamp,
            "first_activity_timestamp": s.first_activity_timestamp,
            "has_nft": s.has_required_nft,
            "is_early_adopter": self.is_early_adopter,
            "fallbacks": dict(s.fallbacks),
            "eligibility": {
                "criteria": [self._criterion_dict(c) for c in self.verdict.criteria],
                "overall_eligible": self.verdict.overall_eligible,
                "explanation": self.verdict.explanation,
            },
        }


class WalletReportAssembler:
    """Runs the collector then the evaluator for one address."""

    def __init__(self, collector: SignalSource) -> None:
        self._collector = collector

    async def assemble(self, address: str, requirements: EligibilityRequirements) -> WalletReport:
        signals = await self._collector.collect(
            address, early_adopter_cutoff=requirements.early_adopter_cutoff
        )
        verdict = evaluate_eligibility(signals, requirements)
        bind_wallet(signals.address).info(
            "wallet_report_built",
            eligible=verdict.overall_eligible,
            failing=[c.name for c in verdict.failing],
            fallbacks=sorted(signals.fallbacks),
        )
        return WalletReport(signals=signals, verdict=verdict, requirements=requirements)

"""
Eligibility evaluator: WalletSignals + EligibilityRequirements -> EligibilityVerdict.

Five fixed criteria, all required (no weighting, no partial credit).
Numeric criteria pass when actual >= required; boolean criteria when
actual == required. Requirements in their "off" state (e.g. NFT not
required) are still evaluated as equality checks, never skipped.
Pure: no I/O, no clock, no mutation of the inputs.
"""

from __future__ import annotations

from backend_airdrop.airdrop_logging import get_logger
from backend_airdrop.analytics.models import (
    COMPARISON_AT_LEAST,
    COMPARISON_EQUALS,
    CriterionResult,
    EligibilityRequirements,
    EligibilityVerdict,
    WalletSignals,
)
from backend_airdrop.utils.formatting import format_timestamp, token_amount

logger = get_logger(__name__)

CRITERION_REFERENCE_TRANSACTIONS = "reference_transactions"
CRITERION_NFT_OWNERSHIP = "nft_ownership"
CRITERION_TOKEN_BALANCE = "token_balance"
CRITERION_TARGET_TRANSACTIONS = "target_transactions"
CRITERION_EARLY_ADOPTER = "early_adopter"

CRITERIA_ORDER = (
    CRITERION_REFERENCE_TRANSACTIONS,
    CRITERION_NFT_OWNERSHIP,
    CRITERION_TOKEN_BALANCE,
    CRITERION_TARGET_TRANSACTIONS,
    CRITERION_EARLY_ADOPTER,
)


def is_early_adopter(signals: WalletSignals, cutoff: int) -> bool:
    return signals.first_activity_timestamp < cutoff


def evaluate_eligibility(
    signals: WalletSignals,
    requirements: EligibilityRequirements,
) -> EligibilityVerdict:
    """
    Evaluate every criterion and return the verdict.

    Balance is compared as a Decimal rounded down to the display precision,
    so the shown amount and the pass/fail flag always agree.
    """
    req = requirements
    balance = token_amount(signals.balance_wei, req.token_decimals, req.balance_precision)
    cutoff_label = format_timestamp(req.early_adopter_cutoff)

    criteria = (
        CriterionResult(
            name=CRITERION_REFERENCE_TRANSACTIONS,
            label=f"{req.reference_chain_name} transactions",
            required=req.min_reference_transactions,
            actual=signals.reference_transaction_count,
            comparison=COMPARISON_AT_LEAST,
            failure_reason=f"not enough {req.reference_chain_name} transactions",
        ),
        CriterionResult(
            name=CRITERION_NFT_OWNERSHIP,
            label=f"{req.nft_name} NFT ownership",
            required=req.require_nft,
            actual=signals.has_required_nft,
            comparison=COMPARISON_EQUALS,
            failure_reason=(
                f"missing {req.nft_name} NFT ownership"
                if req.require_nft
                else f"{req.nft_name} NFT ownership is not allowed"
            ),
        ),
        CriterionResult(
            name=CRITERION_TOKEN_BALANCE,
            label=f"{req.token_symbol} token balance",
            required=req.min_balance,
            actual=balance,
            comparison=COMPARISON_AT_LEAST,
            failure_reason=f"insufficient {req.token_symbol} token balance",
        ),
        CriterionResult(
            name=CRITERION_TARGET_TRANSACTIONS,
            label=f"{req.target_chain_name} transactions",
            required=req.min_target_transactions,
            actual=signals.transaction_count,
            comparison=COMPARISON_AT_LEAST,
            failure_reason=f"not enough {req.target_chain_name} transactions",
        ),
        CriterionResult(
            name=CRITERION_EARLY_ADOPTER,
            label=f"Activity before {cutoff_label}",
            required=req.require_early_adopter,
            actual=is_early_adopter(signals, req.early_adopter_cutoff),
            comparison=COMPARISON_EQUALS,
            failure_reason=(
                f"no activity before {cutoff_label}"
                if req.require_early_adopter
                else f"activity before {cutoff_label} is not allowed"
            ),
            detail=format_timestamp(signals.first_activity_timestamp),
        ),
    )

    verdict = EligibilityVerdict(criteria=criteria)
    logger.debug(
        "eligibility_evaluated",
        wallet=signals.address[:10] + "...",
        eligible=verdict.overall_eligible,
        failing=[c.name for c in verdict.failing],
    )
    return verdict

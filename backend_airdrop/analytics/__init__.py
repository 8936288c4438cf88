"""
Airdrop eligibility analytics.

Collects on-chain signals for a wallet, evaluates them against the rule set,
and assembles the wallet report.
Modules: signal_collector, eligibility, report, models.
"""

from backend_airdrop.analytics.eligibility import evaluate_eligibility
from backend_airdrop.analytics.report import WalletReport, WalletReportAssembler
from backend_airdrop.analytics.signal_collector import ChainSignalCollector

__all__ = [
    "ChainSignalCollector",
    "evaluate_eligibility",
    "WalletReport",
    "WalletReportAssembler",
]

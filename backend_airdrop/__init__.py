"""
Backend Airdrop: wallet analytics and airdrop eligibility service.

Collects on-chain signals for an EVM wallet over JSON-RPC, evaluates them
against a configurable rule set, and serves the resulting report over HTTP.
Layers: rpc client, analytics (collector, evaluator, report), api server.
"""

__version__ = "0.1.0"

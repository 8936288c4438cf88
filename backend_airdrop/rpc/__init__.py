"""
JSON-RPC access to EVM nodes: async client plus hex/ABI payload helpers.
"""

from backend_airdrop.rpc.client import JsonRpcClient

__all__ = ["JsonRpcClient"]

"""
Structured logging for Backend Airdrop.

JSON logs with timestamp, event_type, and request/wallet context.
Use get_logger() in all modules for aggregation-friendly output.
"""

from backend_airdrop.airdrop_logging.logger import bind_wallet, get_logger

__all__ = ["get_logger", "bind_wallet"]

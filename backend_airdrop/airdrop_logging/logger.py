"""
Structured JSON logging: timestamp, event_type, wallet and request context.

structlog with ISO timestamps, log level, and consistent keys for
aggregation. All modules should use get_logger() and log a snake_case
event name plus key/value context (wallet, method, error, ...).

Uses only Python stdlib logging and structlog; no backend_airdrop imports to avoid circular imports.
"""

from __future__ import annotations

import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any
from urllib.parse import urlsplit, urlunsplit

import structlog

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_LEVEL_VALUE = getattr(logging, LOG_LEVEL, logging.INFO)

# JSON output for production (LOG_FORMAT=json); human-readable for local
LOG_FORMAT = os.getenv("LOG_FORMAT", "json").strip().lower()


def _add_timestamp(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Ensure timestamp is always present (ISO 8601)."""
    if "timestamp" not in event_dict:
        event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def _normalize_event(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Rename structlog 'event' to event_type for consistency; keep message if present."""
    if "event" in event_dict and "event_type" not in event_dict:
        event_dict["event_type"] = event_dict.pop("event")
    if "message" not in event_dict and "event_type" in event_dict:
        event_dict["message"] = str(event_dict["event_type"])
    return event_dict


def configure_structlog() -> None:
    """Configure structlog once at import: JSON, timestamp, level, event_type."""
    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        _add_timestamp,
        _normalize_event,
    ]
    if LOG_FORMAT == "json":
        shared_processors.append(structlog.processors.JSONRenderer())
    else:
        shared_processors.append(
            structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
        )
    structlog.configure(
        processors=shared_processors,
        wrapper_class=structlog.make_filtering_bound_logger(LOG_LEVEL_VALUE),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )


if not structlog.is_configured():
    configure_structlog()


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Return a structured logger for the given module name.

        logger = get_logger(__name__)
        logger.info("wallet_report_built", wallet=addr, eligible=True)

    Output (JSON): {"event_type": "wallet_report_built", "wallet": "...", "eligible": true,
    "timestamp": "...", "level": "info", "logger": "module.name"}
    """
    return structlog.get_logger(name).bind(logger=name)


def bind_wallet(address: str) -> structlog.BoundLogger:
    """Return a logger with a shortened wallet address bound to all subsequent log calls."""
    return get_logger("backend_airdrop").bind(wallet=short_wallet(address))


def short_wallet(address: str) -> str:
    """Shorten an address for logs: first 10 chars + '...'."""
    address = address or ""
    return address[:10] + "..." if len(address) > 10 else address


def mask_url(url: str) -> str:
    """
    Reduce an endpoint URL to scheme, host and port.

    Providers put API keys in the query, the credentials or the path
    (Infura /v3/<key>, Alchemy /v2/<key>), so any path or query is replaced by '/***'.
    """
    try:
        parts = urlsplit(url)
        port = parts.port
    except ValueError:
        return "***"
    netloc = parts.hostname or ""
    if port:
        netloc = f"{netloc}:{port}"
    path = "/***" if parts.path.strip("/") or parts.query else ""
    return urlunsplit((parts.scheme, netloc, path, "", ""))

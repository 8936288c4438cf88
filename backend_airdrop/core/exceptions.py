"""
Application-level exceptions.

Upstream faults (RPC transport and protocol) are absorbed by the signal
collector; validation and configuration errors surface to the API layer.
"""

from __future__ import annotations


class UpstreamRpcError(Exception):
    """A JSON-RPC call failed. Carries the RPC method and the upstream message."""

    def __init__(self, method: str, message: str) -> None:
        self.method = method
        self.message = message
        super().__init__(f"{method}: {message}")


class UpstreamTransportError(UpstreamRpcError):
    """Network failure, timeout, or non-2xx HTTP status talking to the RPC endpoint."""


class UpstreamProtocolError(UpstreamRpcError):
    """The RPC endpoint answered with an error envelope or an unusable payload."""

    def __init__(self, method: str, message: str, code: int | None = None) -> None:
        self.code = code
        super().__init__(method, message)


class AddressValidationError(ValueError):
    """Wallet address does not match 0x followed by 40 hex digits."""


class RequirementsConfigError(ValueError):
    """Eligibility requirements configuration is malformed."""

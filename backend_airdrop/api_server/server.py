"""
FastAPI server: wallet analytics and airdrop eligibility API.

Exposes GET /api/wallet/{address} returning on-chain signals and the
eligibility verdict, GET /api/requirements with the rules in force, and
GET /health. Every wallet request builds its own RPC clients; settings and
requirements are injected per request via Depends.
"""

from __future__ import annotations

from contextlib import AsyncExitStack, asynccontextmanager
from typing import Any, AsyncIterator

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, Field

from backend_airdrop import __version__
from backend_airdrop.airdrop_logging import get_logger
from backend_airdrop.airdrop_logging.logger import mask_url, short_wallet
from backend_airdrop.analytics.models import EligibilityRequirements
from backend_airdrop.analytics.report import WalletReportAssembler
from backend_airdrop.analytics.signal_collector import ChainSignalCollector
from backend_airdrop.api_server.middleware import (
    ClientDisconnected,
    request_logging_middleware,
    run_until_disconnected,
)
from backend_airdrop.config.requirements import load_requirements
from backend_airdrop.config.settings import Settings, get_settings
from backend_airdrop.core.exceptions import AddressValidationError, RequirementsConfigError
from backend_airdrop.rpc.client import JsonRpcClient
from backend_airdrop.utils.wallet_utils import normalize_address

logger = get_logger(__name__)

INVALID_ADDRESS_DETAIL = "Invalid Ethereum address format"
GENERIC_ERROR_DETAIL = "An unexpected error occurred while fetching wallet data"
# nginx convention for "client closed request"
CLIENT_CLOSED_REQUEST = 499


# -----------------------------------------------------------------------------
# Dependencies
# -----------------------------------------------------------------------------

def get_app_settings() -> Settings:
    return get_settings()


def get_requirements() -> EligibilityRequirements:
    """Dependency: requirements in force for this request (re-read each time)."""
    try:
        return load_requirements()
    except RequirementsConfigError as e:
        logger.exception("requirements_config_invalid", error=str(e))
        raise HTTPException(status_code=500, detail=GENERIC_ERROR_DETAIL) from e


def valid_address(address: str) -> str:
    """Dependency: path address normalized to lowercase; 400 before any upstream work."""
    try:
        return normalize_address(address)
    except AddressValidationError as e:
        logger.info("wallet_address_rejected", address=address[:64])
        raise HTTPException(status_code=400, detail=INVALID_ADDRESS_DETAIL) from e


async def get_assembler(
    settings: Settings = Depends(get_app_settings),
) -> AsyncIterator[WalletReportAssembler]:
    """Dependency: fresh RPC clients and collector per request; clients closed afterwards."""
    async with AsyncExitStack() as stack:
        target = await stack.enter_async_context(
            JsonRpcClient(settings.target_rpc_url, timeout_sec=settings.rpc_timeout_sec)
        )
        reference = None
        if settings.reference_chain_enabled:
            reference = await stack.enter_async_context(
                JsonRpcClient(settings.reference_rpc_url, timeout_sec=settings.rpc_timeout_sec)
            )
        yield WalletReportAssembler(ChainSignalCollector(target, settings, reference=reference))


# -----------------------------------------------------------------------------
# Response models
# -----------------------------------------------------------------------------

class CriterionResponse(BaseModel):
    """One eligibility rule: required vs actual, and whether it passed."""

    name: str = Field(..., description="Stable criterion id")
    label: str = Field(..., description="Human-readable criterion name")
    required: bool | int | str = Field(..., description="Threshold or expected value")
    actual: bool | int | str = Field(..., description="Observed value")
    satisfied: bool
    detail: str | None = Field(None, description="Extra context (e.g. first activity date)")


class EligibilityResponse(BaseModel):
    criteria: list[CriterionResponse]
    overall_eligible: bool = Field(..., description="True only when every criterion is satisfied")
    explanation: str


class WalletReportResponse(BaseModel):
    """GET /api/wallet/{address} response."""

    address: str = Field(..., description="Lowercase 0x address")
    checksum_address: str = Field(..., description="EIP-55 display form")
    short_address: str
    balance: str = Field(..., description="Native balance, e.g. '12.000 MON'")
    balance_wei: str = Field(..., description="Native balance in base units (decimal string)")
    total_transactions: int = Field(..., ge=0)
    reference_transactions: int = Field(..., ge=0)
    unique_contracts: int = Field(..., ge=0)
    last_activity: str
    last_activity_timestamp: int
    first_activity_timestamp: int
    has_nft: bool
    is_early_adopter: bool
    fallbacks: dict[str, str] = Field(
        default_factory=dict,
        description="Fields not backed by a real observation, with the reason",
    )
    eligibility: EligibilityResponse


class RequirementsResponse(BaseModel):
    """GET /api/requirements response."""

    min_reference_transactions: int
    min_target_transactions: int
    min_token_balance: str
    require_nft: bool
    require_early_adopter: bool
    early_adopter_cutoff: int
    reference_chain_name: str
    target_chain_name: str
    token_symbol: str
    nft_name: str
    token_decimals: int
    balance_precision: int


# -----------------------------------------------------------------------------
# Lifespan
# -----------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    logger.info(
        "api_started",
        version=__version__,
        target_rpc=mask_url(settings.target_rpc_url),
        reference_rpc=mask_url(settings.reference_rpc_url) if settings.reference_chain_enabled else None,
        rpc_timeout_sec=settings.rpc_timeout_sec,
    )
    yield
    logger.info("api_stopped")


# -----------------------------------------------------------------------------
# Routes
# -----------------------------------------------------------------------------

router = APIRouter()


@router.get("/wallet/{address}", response_model=WalletReportResponse)
async def get_wallet_report(
    request: Request,
    address: str = Depends(valid_address),
    requirements: EligibilityRequirements = Depends(get_requirements),
    assembler: WalletReportAssembler = Depends(get_assembler),
    settings: Settings = Depends(get_app_settings),
) -> Any:
    """
    Analyze a wallet and check airdrop eligibility.

    Upstream RPC faults are absorbed field by field (see `fallbacks`);
    only unexpected failures produce a generic 500.
    """
    try:
        report = await run_until_disconnected(
            request,
            assembler.assemble(address, requirements),
            poll_sec=settings.disconnect_poll_sec,
        )
    except ClientDisconnected:
        logger.info("wallet_report_abandoned", wallet=short_wallet(address))
        return Response(status_code=CLIENT_CLOSED_REQUEST)
    except Exception as e:
        logger.exception("wallet_report_failed", wallet=short_wallet(address), error=str(e))
        raise HTTPException(status_code=500, detail=GENERIC_ERROR_DETAIL) from e
    return WalletReportResponse(**report.as_response())


@router.get("/requirements", response_model=RequirementsResponse)
def get_current_requirements(
    requirements: EligibilityRequirements = Depends(get_requirements),
) -> RequirementsResponse:
    """Eligibility rules currently in force (read-only)."""
    return RequirementsResponse(**requirements.as_dict())


app = FastAPI(
    title="Backend Airdrop API",
    description="Wallet analytics and airdrop eligibility from on-chain data.",
    version=__version__,
    lifespan=lifespan,
)

app.middleware("http")(request_logging_middleware)
app.include_router(router, prefix="/api", tags=["Wallet"])


@app.get("/health")
def health() -> dict[str, str]:
    """Liveness probe: API is up."""
    return {"status": "ok"}


@app.exception_handler(HTTPException)
def http_exception_handler(request: Any, exc: HTTPException) -> JSONResponse:
    """Consistent JSON error response for HTTPException."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
    )


@app.exception_handler(Exception)
def unhandled_exception_handler(request: Any, exc: Exception) -> JSONResponse:
    """Last resort: log full detail server-side, return a generic message."""
    logger.exception("unhandled_exception", error=str(exc), error_type=type(exc).__name__)
    return JSONResponse(
        status_code=500,
        content={"detail": GENERIC_ERROR_DETAIL},
    )

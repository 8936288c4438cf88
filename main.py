"""
Main entrypoint: FastAPI server for wallet analytics and airdrop eligibility.

Env: TARGET_RPC_URL, REFERENCE_RPC_URL, RPC_TIMEOUT_SEC, AIRDROP_* requirements,
AIRDROP_REQUIREMENTS_PATH, API_HOST, API_PORT, LOG_LEVEL, LOG_FORMAT.

Equivalent: uvicorn backend_airdrop.api_server.app:app --host 0.0.0.0 --port 8000
"""

import sys

# Configure structured JSON logging before other imports that may log
from backend_airdrop.airdrop_logging import get_logger

logger = get_logger("main")


def main() -> None:
    """Validate configuration, then run the API server in the main thread."""
    import uvicorn

    from backend_airdrop.config import get_settings, load_requirements

    try:
        settings = get_settings()
        requirements = load_requirements()
    except ValueError as e:
        logger.error("main_config_error", error=str(e))
        sys.exit(1)

    logger.info(
        "main_starting",
        api_host=settings.api_host,
        api_port=settings.api_port,
        requirements=requirements.as_dict(),
    )
    uvicorn.run(
        "backend_airdrop.api_server.app:app",
        host=settings.api_host,
        port=settings.api_port,
        log_level="info",
    )


if __name__ == "__main__":
    main()

"""
Main entrypoint: validate configuration, then run the FastAPI server.

A missing GEMINI_API_KEY (or any other invalid setting) stops the process
with exit status 1 before anything listens.

Env: GEMINI_API_KEY (required), PORT, API_HOST, SUI_NETWORK, SUI_RPC_URL,
CHARITY_PACKAGE_ID, LEDGER_SYNC_ENABLED, LOG_LEVEL, etc.

API-only: uvicorn backend_charity.api_server.app:app --host 0.0.0.0 --port 5000
"""

import sys

# Configure structured JSON logging before other imports that may log
from backend_charity.logging import configure_logging, get_logger

logger = get_logger("main")


def main() -> None:
    from backend_charity.api_server.server import create_app
    from backend_charity.config import load_server_settings
    from backend_charity.core.exceptions import ConfigurationError

    try:
        settings = load_server_settings()
        configure_logging(settings.log_level)
        app = create_app(settings)
    except ConfigurationError as e:
        logger.error("main_config_error", error=str(e))
        sys.exit(1)

    import uvicorn

    logger.info("main_server_starting", host=settings.host, port=settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level)


if __name__ == "__main__":
    main()

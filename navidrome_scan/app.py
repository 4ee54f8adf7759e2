"""FastAPI application for the Navidrome rescan webhook.

Exposes ``POST /scan``, which calls Navidrome's Subsonic ``startScan``
endpoint and maps the Subsonic envelope onto an HTTP status.
"""

import logging
from typing import Optional

from fastapi import FastAPI, Request, status

from navidrome_scan.client import (
    InvalidEnvelopeError,
    NavidromeClient,
    ScanReadError,
    ScanRequestError,
    ScanTransportError,
)
from navidrome_scan.config import ScanConfig
from shared.responses import respond_ok, respond_with_error, setup_exception_handlers
from shared.server import configure_logging, run_service

logger = logging.getLogger(__name__)

SERVICE_NAME = "navidrome-scan"


def create_app(
    config: Optional[ScanConfig] = None, client: Optional[NavidromeClient] = None
) -> FastAPI:
    """Build the rescan webhook application.

    Args:
        config: Service configuration. Loaded from the environment if omitted.
        client: Navidrome client. Built from ``config`` if omitted.

    Returns:
        FastAPI: Configured application.
    """
    if config is None:
        config = ScanConfig.from_env()
    if client is None:
        client = NavidromeClient(config)

    app = FastAPI(
        title="Navidrome Scan Webhook",
        description="Triggers a Navidrome library scan through the Subsonic API",
        version="1.0.0",
    )
    app.state.config = config
    app.state.client = client
    setup_exception_handlers(app)

    @app.post("/scan")
    async def scan(request: Request):
        """Trigger a Navidrome library scan.

        Returns:
            JSONResponse: 200 on success, 502 when Navidrome reports a
            failure, 500 when no envelope could be obtained.
        """
        client: NavidromeClient = request.app.state.client
        logger.info("Received request, executing Navidrome scan")

        try:
            result = await client.start_scan()
        except ScanRequestError as e:
            logger.error(f"Failed to create Navidrome request: {e}")
            return respond_with_error(
                status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to create internal request"
            )
        except ScanTransportError as e:
            logger.error(f"Navidrome scan request failed: {e}")
            return respond_with_error(
                status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to execute Navidrome scan"
            )
        except ScanReadError as e:
            logger.error(f"Failed to read Navidrome response: {e}")
            return respond_with_error(
                status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to read Navidrome response"
            )
        except InvalidEnvelopeError as e:
            logger.error(f"Failed to parse Navidrome response: {e}")
            return respond_with_error(
                status.HTTP_500_INTERNAL_SERVER_ERROR, "Invalid response from Navidrome"
            )

        if result.failed:
            summary = result.error_summary()
            logger.error(f"Navidrome returned an error: {summary}")
            return respond_with_error(
                status.HTTP_502_BAD_GATEWAY, f"Navidrome returned an error: {summary}"
            )

        logger.info("Navidrome scan triggered successfully")
        return respond_ok(status.HTTP_200_OK, "Navidrome scan triggered successfully.")

    @app.get("/health")
    async def health():
        """Liveness check; does not contact Navidrome."""
        return respond_ok(status.HTTP_200_OK, "ok")

    return app


def main() -> None:
    """Entry point for the rescan webhook service."""
    config = ScanConfig.from_env()
    config.validate()
    configure_logging(config.log_level)

    if not config.navidrome_api_url:
        logger.warning("NAVIDROME_API_URL not set. Scan requests will fail.")

    run_service(create_app(config), config.host, config.port, SERVICE_NAME)


if __name__ == "__main__":
    main()

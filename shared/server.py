"""Process bootstrap shared by both webhooks: logging and uvicorn serving.

Uvicorn captures SIGINT/SIGTERM, stops accepting new connections and drains
in-flight handlers. The drain is bounded: if handlers are still running after
``SHUTDOWN_TIMEOUT_SECONDS`` the process exits with status 1.
"""

import asyncio
import logging
import sys
from typing import List, Optional

import uvicorn
from fastapi import FastAPI

logger = logging.getLogger(__name__)

SHUTDOWN_TIMEOUT_SECONDS = 5.0

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging to stdout.

    Args:
        level: Logging level name (e.g. "INFO", "DEBUG").
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )


class GracefulServer(uvicorn.Server):
    """Uvicorn server whose shutdown drain is bounded by a deadline."""

    def __init__(self, config: uvicorn.Config, shutdown_timeout: float = SHUTDOWN_TIMEOUT_SECONDS):
        super().__init__(config)
        self.shutdown_timeout = shutdown_timeout

    async def shutdown(self, sockets: Optional[List] = None) -> None:
        """Drain connections, exiting with status 1 if the deadline passes.

        Raises:
            SystemExit: If in-flight handlers outlive the shutdown deadline.
        """
        logger.info("Shutting down server")
        try:
            await asyncio.wait_for(super().shutdown(sockets=sockets), timeout=self.shutdown_timeout)
        except asyncio.TimeoutError:
            logger.error(
                f"Server shutdown failed: handlers still running after {self.shutdown_timeout}s"
            )
            raise SystemExit(1)
        logger.info("Server stopped")


def build_server(app: FastAPI, host: str, port: int) -> GracefulServer:
    """Create the uvicorn server for an application.

    Logging is left to ``configure_logging`` so uvicorn's records share the
    root handler and format.
    """
    config = uvicorn.Config(app, host=host, port=port, log_config=None)
    return GracefulServer(config)


def run_service(app: FastAPI, host: str, port: int, service_name: str) -> None:
    """Serve an application until a termination signal arrives.

    Args:
        app: FastAPI application to serve.
        host: Bind address.
        port: TCP listen port.
        service_name: Name used in log lines.
    """
    server = build_server(app, host, port)
    logger.info(f"{service_name} listening on {host}:{port}")
    server.run()

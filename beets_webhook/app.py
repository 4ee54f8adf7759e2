"""FastAPI application for the import webhook.

Exposes ``POST /task/start``, which starts a beets import followed by a
Navidrome rescan in the background and answers 202 straight away.
"""

import logging
from typing import Optional

from fastapi import FastAPI, Request, status

from beets_webhook.config import ImportConfig
from beets_webhook.importer import ImportRunner
from shared.responses import respond_ok, respond_with_error, setup_exception_handlers
from shared.server import configure_logging, run_service

logger = logging.getLogger(__name__)

SERVICE_NAME = "beets-webhook"


def create_app(
    config: Optional[ImportConfig] = None, runner: Optional[ImportRunner] = None
) -> FastAPI:
    """Build the import webhook application.

    Args:
        config: Service configuration. Loaded from the environment if omitted.
        runner: Import runner. Built from ``config`` if omitted.

    Returns:
        FastAPI: Configured application.
    """
    if config is None:
        config = ImportConfig.from_env()
    if runner is None:
        runner = ImportRunner(config)

    app = FastAPI(
        title="Beets Import Webhook",
        description="Runs beet import and triggers a Navidrome rescan",
        version="1.0.0",
    )
    app.state.config = config
    app.state.runner = runner
    setup_exception_handlers(app)

    @app.post("/task/start")
    async def start_task(request: Request):
        """Start an import and scan task unless one is already running.

        Returns:
            JSONResponse: 202 when started, 409 when a task is in progress.
        """
        runner: ImportRunner = request.app.state.runner

        if not runner.try_start():
            logger.warning("Rejected import request: a task is already in progress")
            return respond_with_error(status.HTTP_409_CONFLICT, "A task is already in progress")

        logger.info("Import and scan task started")
        return respond_ok(status.HTTP_202_ACCEPTED, "Import and scan task started")

    @app.get("/health")
    async def health(request: Request):
        """Report whether an import is currently running."""
        runner: ImportRunner = request.app.state.runner
        return respond_ok(status.HTTP_200_OK, "busy" if runner.is_running else "idle")

    return app


def main() -> None:
    """Entry point for the import webhook service."""
    config = ImportConfig.from_env()
    config.validate()
    configure_logging(config.log_level)

    run_service(create_app(config), config.host, config.port, SERVICE_NAME)


if __name__ == "__main__":
    main()

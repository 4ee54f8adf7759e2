"""Plumbing shared by the import and rescan webhooks."""

from .responses import ApiResponse, setup_exception_handlers
from .server import configure_logging, run_service

__all__ = ["ApiResponse", "setup_exception_handlers", "configure_logging", "run_service"]

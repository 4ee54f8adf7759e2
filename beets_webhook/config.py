"""Configuration management for the import webhook.

Loads configuration from environment variables with validation and defaults.
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional

# Fixed by the container layout, not configurable.
DOWNLOADS_PATH = "/app/downloads"
BEETS_IMPORT_COMMAND = ("beet", "import", DOWNLOADS_PATH)

SCAN_TRIGGER_TIMEOUT_SECONDS = 30


@dataclass
class ImportConfig:
    """Configuration for the import webhook service."""

    port: int = 8081
    host: str = "0.0.0.0"
    log_level: str = "INFO"

    # Navidrome rescan trigger, skipped when unset
    navidrome_scan_url: Optional[str] = None

    @classmethod
    def from_env(cls) -> "ImportConfig":
        """Load configuration from environment variables.

        Returns:
            ImportConfig: Configuration instance with values from environment.

        Raises:
            ValueError: If BEETS_PORT is not an integer.
        """
        return cls(
            port=int(os.getenv("BEETS_PORT") or "8081"),
            host=os.getenv("HOST", "0.0.0.0"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            navidrome_scan_url=os.getenv("NAVIDROME_SCAN_URL") or None,
        )

    def validate(self) -> None:
        """Validate configuration values.

        Raises:
            ValueError: If configuration values are invalid.
        """
        if not 0 < self.port < 65536:
            raise ValueError(f"Invalid port {self.port}: must be between 1 and 65535")

        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise ValueError(f"Invalid log level '{self.log_level}'")

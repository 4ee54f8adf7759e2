"""Configuration management for the Navidrome rescan webhook."""

import logging
import os
from dataclasses import dataclass
from typing import Optional

# Subsonic API parameters sent with every request
SUBSONIC_API_VERSION = "1.16.1"
SUBSONIC_CLIENT_NAME = "go-api"
SUBSONIC_FORMAT = "json"

REQUEST_TIMEOUT_SECONDS = 30


@dataclass
class ScanConfig:
    """Configuration for the rescan webhook service."""

    port: int = 8080
    host: str = "0.0.0.0"
    log_level: str = "INFO"

    # Navidrome connection
    navidrome_api_url: Optional[str] = None
    navidrome_user: str = ""
    navidrome_pass: str = ""

    @classmethod
    def from_env(cls) -> "ScanConfig":
        """Load configuration from environment variables.

        Returns:
            ScanConfig: Configuration instance with values from environment.

        Raises:
            ValueError: If PORT is not an integer.
        """
        api_url = os.getenv("NAVIDROME_API_URL") or None

        return cls(
            port=int(os.getenv("PORT") or "8080"),
            host=os.getenv("HOST", "0.0.0.0"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            navidrome_api_url=api_url.rstrip("/") if api_url else None,
            navidrome_user=os.getenv("NAVIDROME_USER", ""),
            navidrome_pass=os.getenv("NAVIDROME_PASS", ""),
        )

    def validate(self) -> None:
        """Validate configuration values.

        A missing NAVIDROME_API_URL is only logged: the service still starts
        and reports the problem on every scan request.

        Raises:
            ValueError: If configuration values are invalid.
        """
        if not 0 < self.port < 65536:
            raise ValueError(f"Invalid port {self.port}: must be between 1 and 65535")

        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise ValueError(f"Invalid log level '{self.log_level}'")

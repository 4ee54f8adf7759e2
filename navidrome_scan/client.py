"""Navidrome Subsonic API client for triggering library scans.

Navidrome answers HTTP 200 even when a call fails at the application level;
the failure is reported inside the ``subsonic-response`` envelope. The client
therefore always parses the body and leaves the decision to the envelope.
"""

import asyncio
import logging
from typing import Optional
from urllib.parse import quote

import aiohttp
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from yarl import URL

from navidrome_scan.config import (
    REQUEST_TIMEOUT_SECONDS,
    SUBSONIC_API_VERSION,
    SUBSONIC_CLIENT_NAME,
    SUBSONIC_FORMAT,
    ScanConfig,
)

logger = logging.getLogger(__name__)

SCAN_ENDPOINT = "/rest/startScan.view"
STATUS_FAILED = "failed"


class NavidromeError(Exception):
    """Base error for a scan request that did not produce an envelope."""


class ScanRequestError(NavidromeError):
    """The scan URL could not be built."""


class ScanTransportError(NavidromeError):
    """The request to Navidrome failed before a response arrived."""


class ScanReadError(NavidromeError):
    """The response body could not be read."""


class InvalidEnvelopeError(NavidromeError):
    """The response body is not a Subsonic envelope."""


class SubsonicError(BaseModel):
    """Error object of a failed Subsonic response."""

    code: int = 0
    message: str = ""


class SubsonicResponse(BaseModel):
    """Body of the ``subsonic-response`` envelope."""

    model_config = ConfigDict(extra="ignore")

    status: str = ""
    error: Optional[SubsonicError] = None

    @property
    def failed(self) -> bool:
        """Only the literal status "failed" is a failure."""
        return self.status == STATUS_FAILED

    def error_summary(self) -> str:
        error = self.error or SubsonicError()
        return f"{error.message} (Code: {error.code})"


class SubsonicEnvelope(BaseModel):
    """Top level Subsonic JSON document."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    subsonic_response: SubsonicResponse = Field(
        default_factory=SubsonicResponse, alias="subsonic-response"
    )


def parse_envelope(body: bytes) -> SubsonicResponse:
    """Parse a Subsonic JSON body.

    Args:
        body: Raw response body.

    Returns:
        SubsonicResponse: The inner ``subsonic-response`` object.

    Raises:
        InvalidEnvelopeError: If the body is not valid JSON or has the wrong shape.
    """
    try:
        envelope = SubsonicEnvelope.model_validate_json(body)
    except ValidationError as e:
        raise InvalidEnvelopeError(f"Invalid Subsonic envelope: {e}") from e
    return envelope.subsonic_response


class NavidromeClient:
    """Triggers library scans through the Subsonic ``startScan`` endpoint."""

    def __init__(self, config: ScanConfig):
        """Initialize the client.

        Args:
            config: Rescan webhook configuration.
        """
        self.config = config

    def build_scan_url(self) -> URL:
        """Build the authenticated startScan URL.

        Credentials are percent-encoded, so URL-safe values appear unchanged.

        Returns:
            URL: Fully encoded request URL.

        Raises:
            ScanRequestError: If NAVIDROME_API_URL is unset or not an http(s) URL.
        """
        base_url = self.config.navidrome_api_url
        if not base_url:
            raise ScanRequestError("NAVIDROME_API_URL is not set")

        try:
            base = URL(base_url)
        except (TypeError, ValueError) as e:
            raise ScanRequestError(f"Invalid NAVIDROME_API_URL {base_url!r}: {e}") from e

        if base.scheme not in ("http", "https") or not base.host:
            raise ScanRequestError(
                f"NAVIDROME_API_URL must be an absolute http(s) URL: {base_url!r}"
            )

        query = (
            f"u={quote(self.config.navidrome_user, safe='')}"
            f"&p={quote(self.config.navidrome_pass, safe='')}"
            f"&v={SUBSONIC_API_VERSION}"
            f"&c={SUBSONIC_CLIENT_NAME}"
            f"&f={SUBSONIC_FORMAT}"
        )
        try:
            return URL(f"{base_url.rstrip('/')}{SCAN_ENDPOINT}?{query}", encoded=True)
        except ValueError as e:
            raise ScanRequestError(f"Failed to build scan URL: {e}") from e

    async def start_scan(self) -> SubsonicResponse:
        """Ask Navidrome to start a library scan.

        Returns:
            SubsonicResponse: Parsed envelope. Check ``failed`` for the outcome.

        Raises:
            ScanRequestError: If the request URL could not be built.
            ScanTransportError: If the request failed or timed out.
            ScanReadError: If the response body could not be read.
            InvalidEnvelopeError: If the body is not a Subsonic envelope.
        """
        url = self.build_scan_url()

        async with aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=REQUEST_TIMEOUT_SECONDS)
        ) as session:
            try:
                response = await session.get(url)
            except asyncio.TimeoutError as e:
                raise ScanTransportError(
                    f"Request timed out after {REQUEST_TIMEOUT_SECONDS}s"
                ) from e
            except aiohttp.ClientError as e:
                raise ScanTransportError(str(e) or e.__class__.__name__) from e

            async with response:
                try:
                    body = await response.read()
                except asyncio.TimeoutError as e:
                    raise ScanReadError(
                        f"Reading response timed out after {REQUEST_TIMEOUT_SECONDS}s"
                    ) from e
                except aiohttp.ClientError as e:
                    raise ScanReadError(str(e) or e.__class__.__name__) from e

                logger.info(
                    f"Navidrome scan triggered. Status: {response.status} {response.reason}, "
                    f"Response: {body.decode('utf-8', errors='replace')}"
                )

        return parse_envelope(body)

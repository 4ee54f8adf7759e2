"""Unit tests for the rescan webhook FastAPI application."""

import socket
from unittest.mock import AsyncMock, Mock

import pytest
from fastapi.testclient import TestClient

from navidrome_scan.app import create_app
from navidrome_scan.client import (
    InvalidEnvelopeError,
    NavidromeClient,
    ScanReadError,
    ScanRequestError,
    ScanTransportError,
    SubsonicError,
    SubsonicResponse,
)
from navidrome_scan.config import ScanConfig


@pytest.fixture
def mock_navidrome():
    """Create a mock Navidrome client that reports success."""
    navidrome = Mock(spec=NavidromeClient)
    navidrome.start_scan = AsyncMock(return_value=SubsonicResponse(status="ok"))
    return navidrome


@pytest.fixture
def client(mock_navidrome):
    """Create a test client with a mocked Navidrome client."""
    config = ScanConfig(navidrome_api_url="http://navidrome:4533")
    app = create_app(config=config, client=mock_navidrome)
    with TestClient(app) as test_client:
        yield test_client


class TestScanEndpoint:
    """Test POST /scan."""

    def test_success(self, client, mock_navidrome):
        response = client.post("/scan")

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/json"
        assert response.json() == {
            "status": "ok",
            "message": "Navidrome scan triggered successfully.",
        }
        mock_navidrome.start_scan.assert_awaited_once()

    def test_failed_envelope_returns_502(self, client, mock_navidrome):
        mock_navidrome.start_scan.return_value = SubsonicResponse(
            status="failed",
            error=SubsonicError(code=40, message="Wrong username or password"),
        )

        response = client.post("/scan")

        assert response.status_code == 502
        body = response.json()
        assert body["status"] == "error"
        assert body["message"] == (
            "Navidrome returned an error: Wrong username or password (Code: 40)"
        )

    @pytest.mark.parametrize(
        "error, message",
        [
            (ScanRequestError("no url"), "Failed to create internal request"),
            (ScanTransportError("refused"), "Failed to execute Navidrome scan"),
            (ScanReadError("truncated"), "Failed to read Navidrome response"),
            (InvalidEnvelopeError("not json"), "Invalid response from Navidrome"),
        ],
    )
    def test_client_errors_return_500(self, client, mock_navidrome, error, message):
        mock_navidrome.start_scan.side_effect = error

        response = client.post("/scan")

        assert response.status_code == 500
        assert response.json() == {"status": "error", "message": message}

    @pytest.mark.parametrize("method", ["GET", "PUT", "DELETE"])
    def test_method_not_allowed(self, client, mock_navidrome, method):
        response = client.request(method, "/scan")

        assert response.status_code == 405
        assert response.json() == {"status": "error", "message": "Only POST method is allowed"}
        mock_navidrome.start_scan.assert_not_awaited()

    def test_health(self, client, mock_navidrome):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "message": "ok"}
        mock_navidrome.start_scan.assert_not_awaited()


class TestScanEndpointWithRealClient:
    """Exercise the real client for failures that need no upstream."""

    def test_missing_api_url(self):
        app = create_app(config=ScanConfig(navidrome_api_url=None))

        with TestClient(app) as client:
            response = client.post("/scan")

        assert response.status_code == 500
        assert response.json()["message"] == "Failed to create internal request"

    def test_upstream_unreachable(self):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            sock.bind(("127.0.0.1", 0))
            port = sock.getsockname()[1]

        app = create_app(config=ScanConfig(navidrome_api_url=f"http://127.0.0.1:{port}"))

        with TestClient(app) as client:
            response = client.post("/scan")

        assert response.status_code == 500
        assert response.json() == {"status": "error", "message": "Failed to execute Navidrome scan"}


def test_create_app_from_env(monkeypatch):
    monkeypatch.setenv("NAVIDROME_API_URL", "http://navidrome:4533/")
    monkeypatch.setenv("NAVIDROME_USER", "admin")

    app = create_app()

    assert app.state.config.navidrome_api_url == "http://navidrome:4533"
    assert isinstance(app.state.client, NavidromeClient)

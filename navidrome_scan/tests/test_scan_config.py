"""Tests for rescan webhook configuration."""

import pytest

from navidrome_scan.config import ScanConfig

ENV_KEYS = ("PORT", "HOST", "LOG_LEVEL", "NAVIDROME_API_URL", "NAVIDROME_USER", "NAVIDROME_PASS")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_defaults():
    config = ScanConfig.from_env()

    assert config.port == 8080
    assert config.navidrome_api_url is None
    assert config.navidrome_user == ""
    assert config.navidrome_pass == ""


def test_from_env(monkeypatch):
    monkeypatch.setenv("PORT", "4533")
    monkeypatch.setenv("NAVIDROME_API_URL", "http://navidrome:4533/")
    monkeypatch.setenv("NAVIDROME_USER", "admin")
    monkeypatch.setenv("NAVIDROME_PASS", "secret")

    config = ScanConfig.from_env()

    assert config.port == 4533
    assert config.navidrome_api_url == "http://navidrome:4533"
    assert config.navidrome_user == "admin"
    assert config.navidrome_pass == "secret"


def test_non_numeric_port(monkeypatch):
    monkeypatch.setenv("PORT", "http")

    with pytest.raises(ValueError):
        ScanConfig.from_env()


def test_validate_accepts_missing_api_url():
    ScanConfig().validate()


def test_validate_rejects_bad_port():
    with pytest.raises(ValueError, match="Invalid port"):
        ScanConfig(port=0).validate()


def test_validate_rejects_bad_log_level():
    with pytest.raises(ValueError, match="Invalid log level"):
        ScanConfig(log_level="chatty").validate()

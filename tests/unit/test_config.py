"""Unit tests for environment-driven configuration."""

from __future__ import annotations

from pathlib import Path

import pytest

from mozvpn_client.config import ClientConfig

_VARS = (
    "MOZVPN_BASE_URL",
    "MOZVPN_RELAY_LIST_URL",
    "MOZVPN_CALLBACK_HOST",
    "MOZVPN_CALLBACK_PORT",
    "MOZVPN_LOGIN_TIMEOUT",
    "MOZVPN_HTTP_TIMEOUT",
    "MOZVPN_DEVICE_NAME",
    "MOZVPN_USER_AGENT",
    "MOZVPN_STORAGE_DIR",
    "MOZVPN_RELOGIN_ON_REJECTED_TOKEN",
    "MOZVPN_RELAY_CACHE_TTL",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults() -> None:
    config = ClientConfig.from_env()
    assert config.base_url == "https://vpn.mozilla.org"
    assert config.relay_list_url == "https://api.mullvad.net/public/relays/wireguard/v1/"
    assert config.callback_host == "localhost"
    assert config.callback_port == 9443
    assert config.login_timeout == 300
    assert config.request_timeout == (5, 20)
    assert config.relogin_on_rejected_token is False
    assert config.store_path == Path.home() / ".mozvpn-client" / "preferences.json"


def test_overrides(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("MOZVPN_BASE_URL", "https://staging.example/")
    monkeypatch.setenv("MOZVPN_CALLBACK_PORT", "9555")
    monkeypatch.setenv("MOZVPN_LOGIN_TIMEOUT", "0")
    monkeypatch.setenv("MOZVPN_STORAGE_DIR", str(tmp_path))
    monkeypatch.setenv("MOZVPN_RELOGIN_ON_REJECTED_TOKEN", "Yes")
    monkeypatch.setenv("MOZVPN_DEVICE_NAME", "work-laptop")

    config = ClientConfig.from_env()

    assert config.base_url == "https://staging.example"
    assert config.callback_port == 9555
    assert config.login_timeout == 0
    assert config.store_path == tmp_path / "preferences.json"
    assert config.relogin_on_rejected_token is True
    assert config.device_name == "work-laptop"


@pytest.mark.parametrize("value", ["abc", "-1"])
def test_invalid_integer_names_variable(monkeypatch: pytest.MonkeyPatch, value: str) -> None:
    monkeypatch.setenv("MOZVPN_CALLBACK_PORT", value)
    with pytest.raises(ValueError, match="MOZVPN_CALLBACK_PORT"):
        ClientConfig.from_env()

"""Client configuration loaded from environment variables.

Every knob has a default matching the public Mozilla VPN deployment, so an
empty environment yields a working client.  Values are read once into an
immutable :class:`ClientConfig`.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final, Tuple

logger = logging.getLogger("mozvpn-client.config")

DEFAULT_BASE_URL: Final[str] = "https://vpn.mozilla.org"
DEFAULT_RELAY_LIST_URL: Final[str] = "https://api.mullvad.net/public/relays/wireguard/v1/"
# The provider redirects to http://localhost:<port>/; uvicorn binds every
# address localhost resolves to, so both 127.0.0.1 and ::1 are served.
DEFAULT_CALLBACK_HOST: Final[str] = "localhost"
DEFAULT_CALLBACK_PORT: Final[int] = 9443
DEFAULT_LOGIN_TIMEOUT: Final[int] = 300
DEFAULT_HTTP_TIMEOUT: Final[int] = 20
DEFAULT_CONNECT_TIMEOUT: Final[int] = 5
DEFAULT_DEVICE_NAME: Final[str] = "MozVPN"
DEFAULT_USER_AGENT: Final[str] = "mozvpn-client"
DEFAULT_RELAY_CACHE_TTL: Final[int] = 3600

_TRUTHY: Final[Tuple[str, ...]] = ("true", "1", "yes", "y", "on")


def _truthy(value: str | None) -> bool:
    return (value or "").strip().lower() in _TRUTHY


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
    if value < 0:
        raise ValueError(f"{name} must not be negative, got {value}")
    return value


def _default_storage_dir() -> Path:
    return Path.home() / ".mozvpn-client"


@dataclass(frozen=True, slots=True)
class ClientConfig:
    """Settings shared by the API client, the login flow and the CLI."""

    base_url: str = DEFAULT_BASE_URL
    relay_list_url: str = DEFAULT_RELAY_LIST_URL
    callback_host: str = DEFAULT_CALLBACK_HOST
    callback_port: int = DEFAULT_CALLBACK_PORT
    login_timeout: int = DEFAULT_LOGIN_TIMEOUT
    http_timeout: int = DEFAULT_HTTP_TIMEOUT
    connect_timeout: int = DEFAULT_CONNECT_TIMEOUT
    device_name: str = DEFAULT_DEVICE_NAME
    user_agent: str = DEFAULT_USER_AGENT
    storage_dir: Path | None = None
    relogin_on_rejected_token: bool = False
    relay_cache_ttl: int = DEFAULT_RELAY_CACHE_TTL

    @property
    def request_timeout(self) -> tuple[int, int]:
        """``(connect, read)`` tuple accepted by :mod:`requests`."""
        return (self.connect_timeout, self.http_timeout)

    @property
    def store_path(self) -> Path:
        """Location of the preference file holding token and keys."""
        return (self.storage_dir or _default_storage_dir()).expanduser() / "preferences.json"

    @classmethod
    def from_env(cls) -> "ClientConfig":
        """Build a config from ``MOZVPN_*`` environment variables."""
        storage_dir_raw = os.getenv("MOZVPN_STORAGE_DIR")
        config = cls(
            base_url=(os.getenv("MOZVPN_BASE_URL") or DEFAULT_BASE_URL).rstrip("/"),
            relay_list_url=os.getenv("MOZVPN_RELAY_LIST_URL") or DEFAULT_RELAY_LIST_URL,
            callback_host=os.getenv("MOZVPN_CALLBACK_HOST") or DEFAULT_CALLBACK_HOST,
            callback_port=_int_env("MOZVPN_CALLBACK_PORT", DEFAULT_CALLBACK_PORT),
            login_timeout=_int_env("MOZVPN_LOGIN_TIMEOUT", DEFAULT_LOGIN_TIMEOUT),
            http_timeout=_int_env("MOZVPN_HTTP_TIMEOUT", DEFAULT_HTTP_TIMEOUT),
            device_name=os.getenv("MOZVPN_DEVICE_NAME") or DEFAULT_DEVICE_NAME,
            user_agent=os.getenv("MOZVPN_USER_AGENT") or DEFAULT_USER_AGENT,
            storage_dir=Path(storage_dir_raw).expanduser() if storage_dir_raw else None,
            relogin_on_rejected_token=_truthy(os.getenv("MOZVPN_RELOGIN_ON_REJECTED_TOKEN")),
            relay_cache_ttl=_int_env("MOZVPN_RELAY_CACHE_TTL", DEFAULT_RELAY_CACHE_TTL),
        )
        logger.debug(
            "Loaded config base_url=%s callback=%s:%s login_timeout=%ss",
            config.base_url,
            config.callback_host,
            config.callback_port,
            config.login_timeout,
        )
        return config

"""HTTP client for the Mozilla VPN account service and the relay directory.

Every call is synchronous and issued one at a time over a shared
:class:`requests.Session`.  There is **no retry policy**: a single failure is
mapped to one of the error kinds in :mod:`mozvpn_client.errors` and raised to
the caller, which decides whether it is fatal.

Secrets (bearer tokens, authorization codes, verifiers) are never logged.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Final, TypeVar

import requests
from cachetools import TTLCache

from mozvpn_client.api.models import Device, LoginResult, RelayList, User
from mozvpn_client.config import ClientConfig
from mozvpn_client.errors import DecodeError, MozVPNError, ProtocolError, TransportError

_LOG = logging.getLogger("mozvpn-client.api.client")

V1_API: Final[str] = "api/v1"
V2_API: Final[str] = "api/v2"
_BODY_LOG_LIMIT: Final[int] = 200

T = TypeVar("T")


class AccountClient:
    """Thin wrapper around the account and relay HTTP endpoints."""

    def __init__(
        self,
        config: ClientConfig | None = None,
        *,
        session: requests.Session | None = None,
    ) -> None:
        self.config = config or ClientConfig()
        self.session = session or requests.Session()
        self.session.headers["User-Agent"] = self.config.user_agent
        self._relay_cache: TTLCache = TTLCache(maxsize=1, ttl=max(self.config.relay_cache_ttl, 1))

    # ------------------------------------------------------------------ #
    # URLs                                                               #
    # ------------------------------------------------------------------ #
    def _account_url(self, api: str, path: str) -> str:
        return f"{self.config.base_url.rstrip('/')}/{api}/{path.lstrip('/')}"

    # ------------------------------------------------------------------ #
    # Transport conventions                                              #
    # ------------------------------------------------------------------ #
    def _request(
        self,
        operation: str,
        method: str,
        url: str,
        *,
        decode: Callable[[Any], T],
        token: str | None = None,
        payload: dict[str, str] | None = None,
        expected: tuple[int, ...] = (200,),
    ) -> T:
        """Send one request and decode its JSON body.

        Raises
        ------
        TransportError
            The request could not be built or sent.
        ProtocolError
            The status code is not in *expected*.
        DecodeError
            The body is not JSON or does not fit the model.
        """
        headers: dict[str, str] = {}
        if token is not None:
            headers["Authorization"] = f"Bearer {token}"
        try:
            resp = self.session.request(
                method,
                url,
                headers=headers,
                json=payload,
                timeout=self.config.request_timeout,
            )
        except requests.RequestException as exc:
            raise TransportError(f"unable to {operation}: {method} {url} failed: {exc}") from exc

        if resp.status_code not in expected:
            body = (resp.text or "")[:_BODY_LOG_LIMIT]
            _LOG.debug("%s returned %s body=%s", operation, resp.status_code, body)
            raise ProtocolError(
                f"unable to {operation}: {method} {url} returned HTTP {resp.status_code}",
                status_code=resp.status_code,
                body=body,
            )

        try:
            data = resp.json()
        except (ValueError, json.JSONDecodeError) as exc:
            raise DecodeError(f"unable to {operation}: response is not valid JSON") from exc

        try:
            return decode(data)
        except DecodeError as exc:
            raise DecodeError(f"unable to {operation}: {exc}") from exc
        except MozVPNError:
            raise
        except (TypeError, ValueError, KeyError, AttributeError) as exc:
            raise DecodeError(f"unable to {operation}: malformed response: {exc}") from exc

    # ------------------------------------------------------------------ #
    # Endpoints                                                          #
    # ------------------------------------------------------------------ #
    def get_user(self, token: str) -> User:
        """``GET /api/v1/vpn/account`` with bearer *token*."""
        user = self._request(
            "fetch account",
            "GET",
            self._account_url(V1_API, "vpn/account"),
            decode=User.from_dict,
            token=token,
        )
        _LOG.info("Fetched account with %d registered devices", len(user.devices))
        return user

    def verify_login(self, code: str, verifier: str) -> LoginResult:
        """Exchange the authorization *code* plus PKCE *verifier* for a session."""
        result = self._request(
            "verify login",
            "POST",
            self._account_url(V2_API, "vpn/login/verify"),
            decode=LoginResult.from_dict,
            payload={"code": code, "code_verifier": verifier},
        )
        _LOG.info("Login verified for account with %d devices", len(result.user.devices))
        return result

    def upload_device(self, pubkey: str, token: str, *, name: str | None = None) -> Device:
        """Register *pubkey* as a new device of the account."""
        device = self._request(
            "register device",
            "POST",
            self._account_url(V1_API, "vpn/device"),
            decode=Device.from_dict,
            token=token,
            payload={"name": name or self.config.device_name, "pubkey": pubkey},
            expected=(200, 201),
        )
        _LOG.info("Registered device name=%s", device.name)
        return device

    def get_relay_list(self) -> RelayList:
        """Fetch the relay directory, cached for ``relay_cache_ttl`` seconds."""
        url = self.config.relay_list_url
        cached = self._relay_cache.get(url)
        if cached is not None:
            return cached
        relays = self._request("fetch relay list", "GET", url, decode=RelayList.from_dict)
        self._relay_cache[url] = relays
        _LOG.info("Fetched relay list with %d countries", len(relays.countries))
        return relays

    def close(self) -> None:
        self.session.close()

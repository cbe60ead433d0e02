"""Shared fixtures: an in-memory account service double and sample payloads."""

from __future__ import annotations

from typing import Any, Callable

import pytest

from mozvpn_client.api.models import Device, LoginResult, RelayList, User
from mozvpn_client.config import ClientConfig
from mozvpn_client.errors import MozVPNError


def pytest_addoption(parser):
    parser.addoption("--integration", action="store_true", help="run integration tests")


def device_payload(index: int) -> dict[str, Any]:
    return {
        "name": f"laptop-{index}",
        "unique_id": None,
        "pubkey": f"pubkey-{index}=",
        "ipv4_address": f"10.64.0.{index}/32",
        "ipv6_address": f"fc00:bbbb:bbbb:bb01::{index}/128",
        "created_at": "2024-06-01T12:00:00.000Z",
    }


def user_payload(device_count: int = 0) -> dict[str, Any]:
    return {
        "email": "jane@example.com",
        "display_name": "Jane",
        "avatar": "https://example.com/avatar.png",
        "devices": [device_payload(i) for i in range(device_count)],
        "subscriptions": {
            "vpn": {
                "active": True,
                "created_at": "2024-01-01T00:00:00.000Z",
                "renews_on": "2025-01-01T00:00:00.000Z",
            }
        },
        "max_devices": 5,
    }


RELAY_PAYLOAD: dict[str, Any] = {
    "countries": [
        {
            "name": "Sweden",
            "code": "se",
            "cities": [
                {
                    "name": "Gothenburg",
                    "code": "got",
                    "latitude": 57.70887,
                    "longitude": 11.97456,
                    "relays": [
                        {
                            "hostname": "se-got-wg-001",
                            "ipv4_addr_in": "185.213.154.66",
                            "ipv6_addr_in": "2a03:1b20:5:f011::a01f",
                            "public_key": "5JMPeO7gXIbR5CnUa/NPNK4L5GqUnreF0/Bozai4pl4=",
                            "multihop_port": 3155,
                        },
                        {
                            "hostname": "se-got-wg-002",
                            "ipv4_addr_in": "185.213.154.67",
                            "ipv6_addr_in": "2a03:1b20:5:f011::a02f",
                            "public_key": "AtvE5KdPeQtOcE2QyXaPt9eQoBV3GBxzimQ2FIuGQ2U=",
                            "multihop_port": 3156,
                        },
                    ],
                },
                {"name": "Stockholm", "code": "sto", "relays": []},
            ],
        },
        {
            "name": "Germany",
            "code": "de",
            "cities": [
                {
                    "name": "Berlin",
                    "code": "ber",
                    "relays": [{"hostname": "de-ber-wg-001"}],
                }
            ],
        },
    ]
}


class FakeAccountClient:
    """Records every call; answers from canned models."""

    def __init__(
        self,
        *,
        user: User,
        token: str = "session-token",
        user_error: MozVPNError | None = None,
        verify_errors: list[MozVPNError] | None = None,
        upload_error: MozVPNError | None = None,
        relay_error: MozVPNError | None = None,
        config: ClientConfig | None = None,
    ) -> None:
        self.config = config or ClientConfig()
        self.user = user
        self.token = token
        self.user_error = user_error
        self.verify_errors = list(verify_errors or [])
        self.upload_error = upload_error
        self.relay_error = relay_error
        self.calls: list[tuple[Any, ...]] = []
        self.closed = False

    def get_user(self, token: str) -> User:
        self.calls.append(("get_user", token))
        if self.user_error is not None:
            raise self.user_error
        return self.user

    def verify_login(self, code: str, verifier: str) -> LoginResult:
        self.calls.append(("verify_login", code, verifier))
        if self.verify_errors:
            raise self.verify_errors.pop(0)
        return LoginResult(user=self.user, token=self.token)

    def upload_device(self, pubkey: str, token: str, *, name: str | None = None) -> Device:
        self.calls.append(("upload_device", pubkey, token, name))
        if self.upload_error is not None:
            raise self.upload_error
        return Device(name=name or "MozVPN", pubkey=pubkey, ipv4_address="10.64.0.99/32")

    def get_relay_list(self) -> RelayList:
        self.calls.append(("get_relay_list",))
        if self.relay_error is not None:
            raise self.relay_error
        return RelayList.from_dict(RELAY_PAYLOAD)

    def close(self) -> None:
        self.closed = True

    def call_names(self) -> list[str]:
        return [c[0] for c in self.calls]


@pytest.fixture()
def make_user() -> Callable[[int], User]:
    """Return a factory building a :class:`User` with *n* devices."""
    return lambda device_count=0: User.from_dict(user_payload(device_count))


@pytest.fixture()
def fake_client_factory() -> Callable[..., FakeAccountClient]:
    return FakeAccountClient


@pytest.fixture()
def relay_payload() -> dict[str, Any]:
    return RELAY_PAYLOAD


@pytest.fixture()
def user_payload_factory() -> Callable[[int], dict[str, Any]]:
    return user_payload

"""Unit tests for decoding account and relay payloads."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from mozvpn_client.api.models import Device, LoginResult, RelayList, User
from mozvpn_client.errors import DecodeError


def test_user_from_dict(user_payload_factory) -> None:
    user = User.from_dict(user_payload_factory(2))

    assert user.email == "jane@example.com"
    assert user.display_name == "Jane"
    assert user.max_devices == 5
    assert len(user.devices) == 2
    assert user.vpn.active is True
    assert user.vpn.renews_on == datetime(2025, 1, 1, tzinfo=timezone.utc)
    assert user.devices[0].created_at == datetime(2024, 6, 1, 12, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "stamp, micro",
    [
        ("2024-06-01T12:00:00.5Z", 500000),
        ("2024-06-01T12:00:00.12345Z", 123450),
        ("2024-06-01T12:00:00.123456789Z", 123456),
        ("2024-06-01T12:00:00.123456789+02:00", 123456),
        ("2024-06-01T12:00:00Z", 0),
    ],
)
def test_device_timestamp_any_fraction_precision(stamp: str, micro: int) -> None:
    device = Device.from_dict({"name": "n", "pubkey": "k", "created_at": stamp})
    assert device.created_at is not None
    assert device.created_at.microsecond == micro
    assert device.created_at.second == 0


def test_user_with_device_appends_without_mutating(make_user) -> None:
    user = make_user(1)
    device = Device(name="new", pubkey="new-key")

    updated = user.with_device(device)

    assert len(user.devices) == 1
    assert updated.devices[-1] == device
    assert updated.email == user.email


def test_device_label_includes_unique_id() -> None:
    assert Device(name="laptop", pubkey="k").label == "laptop"
    assert Device(name="laptop", pubkey="k", unique_id="abc").label == "laptop (abc)"


@pytest.mark.parametrize(
    "payload",
    [
        {"display_name": "no email"},
        {"email": "a@b", "devices": {"not": "a list"}},
        {"email": "a@b", "devices": [{"name": "missing pubkey"}]},
        {"email": "a@b", "devices": [], "max_devices": "many"},
        {"email": "a@b", "devices": [{"name": "n", "pubkey": "k", "created_at": "yesterday"}]},
    ],
)
def test_user_decode_errors(payload) -> None:
    with pytest.raises(DecodeError):
        User.from_dict(payload)


def test_login_result_requires_token(user_payload_factory) -> None:
    ok = LoginResult.from_dict({"user": user_payload_factory(0), "token": "t"})
    assert ok.token == "t"

    with pytest.raises(DecodeError):
        LoginResult.from_dict({"user": user_payload_factory(0)})
    with pytest.raises(DecodeError):
        LoginResult.from_dict({"user": user_payload_factory(0), "token": ""})
    with pytest.raises(DecodeError):
        LoginResult.from_dict({"token": "t"})


def test_relay_list_navigation(relay_payload) -> None:
    relays = RelayList.from_dict(relay_payload)

    assert relays.country_names() == ["Sweden", "Germany"]
    assert relays.city_names("Sweden") == ["Gothenburg", "Stockholm"]
    assert relays.city_names("Atlantis") == []
    assert relays.relay_hostnames("Sweden", "Gothenburg") == ["se-got-wg-001", "se-got-wg-002"]
    assert relays.relay_hostnames("Sweden", "Stockholm") == []

    relay = relays.find_relay("Sweden", "Gothenburg", "se-got-wg-002")
    assert relay is not None
    assert relay.multihop_port == 3156
    assert relays.find_relay("Germany", "Gothenburg", "se-got-wg-002") is None


def test_relay_list_requires_countries() -> None:
    with pytest.raises(DecodeError):
        RelayList.from_dict({})
    with pytest.raises(DecodeError):
        RelayList.from_dict({"countries": [{"name": "Nowhere"}]})

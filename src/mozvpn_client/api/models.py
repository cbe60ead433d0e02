"""Typed, immutable records decoded from the account and relay services."""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Mapping

from mozvpn_client.errors import DecodeError

_FRACTION = re.compile(r"\.(\d+)(?=[+-]\d\d:\d\d$|$)")


def _require(data: Mapping[str, Any], key: str, kind: str) -> Any:
    if not isinstance(data, Mapping):
        raise DecodeError(f"{kind} must be a JSON object, got {type(data).__name__}")
    if key not in data or data[key] is None:
        raise DecodeError(f"{kind} is missing required field {key!r}")
    return data[key]


def _parse_time(value: Any) -> datetime | None:
    if not value:
        return None
    if not isinstance(value, str):
        raise DecodeError(f"timestamp must be a string, got {type(value).__name__}")
    text = value[:-1] + "+00:00" if value.endswith("Z") else value
    # fromisoformat on 3.10 only takes 3 or 6 fractional digits
    text = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        raise DecodeError(f"invalid timestamp {value!r}") from None


# --------------------------------------------------------------------------- #
# Account                                                                     #
# --------------------------------------------------------------------------- #
@dataclass(frozen=True, slots=True)
class Device:
    """A public key registered with the account (one client installation)."""

    name: str
    pubkey: str
    ipv4_address: str = ""
    ipv6_address: str = ""
    unique_id: str | None = None
    created_at: datetime | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Device":
        return cls(
            name=str(_require(data, "name", "device")),
            pubkey=str(_require(data, "pubkey", "device")),
            ipv4_address=str(data.get("ipv4_address") or ""),
            ipv6_address=str(data.get("ipv6_address") or ""),
            unique_id=data.get("unique_id") or None,
            created_at=_parse_time(data.get("created_at")),
        )

    @property
    def label(self) -> str:
        """Display name, with the unique id appended when there is one."""
        return f"{self.name} ({self.unique_id})" if self.unique_id else self.name


@dataclass(frozen=True, slots=True)
class VPNSubscription:
    active: bool = False
    created_at: datetime | None = None
    renews_on: datetime | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "VPNSubscription":
        data = data or {}
        return cls(
            active=bool(data.get("active", False)),
            created_at=_parse_time(data.get("created_at")),
            renews_on=_parse_time(data.get("renews_on")),
        )


@dataclass(frozen=True, slots=True)
class User:
    """Account profile snapshot; held for the process lifetime."""

    email: str
    display_name: str = ""
    avatar: str = ""
    devices: tuple[Device, ...] = ()
    vpn: VPNSubscription = field(default_factory=VPNSubscription)
    max_devices: int = 0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "User":
        email = str(_require(data, "email", "user"))
        raw_devices = data.get("devices") or []
        if not isinstance(raw_devices, list):
            raise DecodeError("user field 'devices' must be a list")
        subscriptions = data.get("subscriptions") or {}
        if not isinstance(subscriptions, Mapping):
            raise DecodeError("user field 'subscriptions' must be an object")
        try:
            max_devices = int(data.get("max_devices") or 0)
        except (TypeError, ValueError):
            raise DecodeError("user field 'max_devices' must be an integer") from None
        return cls(
            email=email,
            display_name=str(data.get("display_name") or ""),
            avatar=str(data.get("avatar") or ""),
            devices=tuple(Device.from_dict(d) for d in raw_devices),
            vpn=VPNSubscription.from_dict(subscriptions.get("vpn")),
            max_devices=max_devices,
        )

    def with_device(self, device: Device) -> "User":
        """Return a copy of this snapshot with *device* appended."""
        return replace(self, devices=self.devices + (device,))


@dataclass(frozen=True, slots=True)
class LoginResult:
    """Body of the login verification endpoint."""

    user: User
    token: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "LoginResult":
        token = str(_require(data, "token", "login response"))
        if not token:
            raise DecodeError("login response carries an empty token")
        return cls(user=User.from_dict(_require(data, "user", "login response")), token=token)


# --------------------------------------------------------------------------- #
# Relays                                                                      #
# --------------------------------------------------------------------------- #
@dataclass(frozen=True, slots=True)
class Relay:
    hostname: str
    ipv4_addr_in: str = ""
    ipv6_addr_in: str = ""
    public_key: str = ""
    multihop_port: int = 0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Relay":
        return cls(
            hostname=str(_require(data, "hostname", "relay")),
            ipv4_addr_in=str(data.get("ipv4_addr_in") or ""),
            ipv6_addr_in=str(data.get("ipv6_addr_in") or ""),
            public_key=str(data.get("public_key") or ""),
            multihop_port=int(data.get("multihop_port") or 0),
        )


@dataclass(frozen=True, slots=True)
class City:
    name: str
    code: str
    latitude: float = 0.0
    longitude: float = 0.0
    relays: tuple[Relay, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "City":
        return cls(
            name=str(_require(data, "name", "city")),
            code=str(_require(data, "code", "city")),
            latitude=float(data.get("latitude") or 0.0),
            longitude=float(data.get("longitude") or 0.0),
            relays=tuple(Relay.from_dict(r) for r in data.get("relays") or []),
        )


@dataclass(frozen=True, slots=True)
class Country:
    name: str
    code: str
    cities: tuple[City, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Country":
        return cls(
            name=str(_require(data, "name", "country")),
            code=str(_require(data, "code", "country")),
            cities=tuple(City.from_dict(c) for c in data.get("cities") or []),
        )


@dataclass(frozen=True, slots=True)
class RelayList:
    """Country → City → Relay tree used for display and selection."""

    countries: tuple[Country, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RelayList":
        raw = _require(data, "countries", "relay list")
        if not isinstance(raw, list):
            raise DecodeError("relay list field 'countries' must be a list")
        try:
            return cls(countries=tuple(Country.from_dict(c) for c in raw))
        except (TypeError, ValueError) as exc:
            raise DecodeError(f"malformed relay list entry: {exc}") from exc

    def country(self, name: str) -> Country | None:
        return next((c for c in self.countries if c.name == name), None)

    def city(self, country: str, city: str) -> City | None:
        found = self.country(country)
        if found is None:
            return None
        return next((c for c in found.cities if c.name == city), None)

    def country_names(self) -> list[str]:
        return [c.name for c in self.countries]

    def city_names(self, country: str) -> list[str]:
        found = self.country(country)
        return [c.name for c in found.cities] if found else []

    def relay_hostnames(self, country: str, city: str) -> list[str]:
        found = self.city(country, city)
        return [r.hostname for r in found.relays] if found else []

    def find_relay(self, country: str, city: str, hostname: str) -> Relay | None:
        found = self.city(country, city)
        if found is None:
            return None
        return next((r for r in found.relays if r.hostname == hostname), None)

"""Cascading relay selection and the connect/disconnect toggle.

Selecting a country resets the city and the relay; selecting a city resets
the relay.  ``ConnectionState`` only tracks what the front end displays, no
tunnel is ever brought up.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from mozvpn_client.api.models import Relay, RelayList
from mozvpn_client.errors import MozVPNError

_LOG = logging.getLogger("mozvpn-client.relays")


class SelectionError(MozVPNError):
    """Raised when a name does not exist at the current selection level."""

    kind = "selection"


@dataclass(frozen=True, slots=True)
class SelectionOptions:
    countries: list[str]
    cities: list[str]
    relays: list[str]


@dataclass
class RelaySelection:
    relay_list: RelayList
    country: str = ""
    city: str = ""
    relay: str = ""

    def select_country(self, name: str) -> None:
        if self.relay_list.country(name) is None:
            raise SelectionError(f"unknown country {name!r}")
        _LOG.debug("Select country %s", name)
        self.country = name
        self.city = ""
        self.relay = ""

    def select_city(self, name: str) -> None:
        if not self.country:
            raise SelectionError("select a country before a city")
        if self.relay_list.city(self.country, name) is None:
            raise SelectionError(f"unknown city {name!r} in {self.country}")
        _LOG.debug("Select city %s", name)
        self.city = name
        self.relay = ""

    def select_relay(self, hostname: str) -> None:
        if not self.city:
            raise SelectionError("select a city before a relay")
        if self.relay_list.find_relay(self.country, self.city, hostname) is None:
            raise SelectionError(f"unknown relay {hostname!r} in {self.city}")
        _LOG.debug("Select relay %s", hostname)
        self.relay = hostname

    def options(self) -> SelectionOptions:
        """Option lists the three selectors should currently offer."""
        return SelectionOptions(
            countries=self.relay_list.country_names(),
            cities=self.relay_list.city_names(self.country) if self.country else [],
            relays=(
                self.relay_list.relay_hostnames(self.country, self.city) if self.city else []
            ),
        )

    @property
    def selected_relay(self) -> Relay | None:
        if not self.relay:
            return None
        return self.relay_list.find_relay(self.country, self.city, self.relay)


@dataclass
class ConnectionState:
    connected: bool = field(default=False)

    def toggle(self) -> bool:
        self.connected = not self.connected
        return self.connected

    @property
    def status_label(self) -> str:
        return "Connected" if self.connected else "Disconnected"

    @property
    def button_label(self) -> str:
        return "Disconnect" if self.connected else "Connect"

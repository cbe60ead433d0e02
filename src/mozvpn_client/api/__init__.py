"""Account and relay service client."""

from __future__ import annotations

from .client import AccountClient  # noqa: F401
from .models import (  # noqa: F401
    City,
    Country,
    Device,
    LoginResult,
    Relay,
    RelayList,
    User,
    VPNSubscription,
)

__all__ = [
    "AccountClient",
    "City",
    "Country",
    "Device",
    "LoginResult",
    "Relay",
    "RelayList",
    "User",
    "VPNSubscription",
]
